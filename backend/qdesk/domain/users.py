"""
User Domain Models for QDesk
"""

from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """A user known to the identity gate."""
    id: str
    email: str
    name: str


class EmailLoginStartRequest(BaseModel):
    """Request a one-time login code for an email address."""
    email: Optional[str] = None


class EmailLoginVerifyRequest(BaseModel):
    """Exchange a one-time login code for a bearer token."""
    email: Optional[str] = None
    code: Optional[str] = None
    name: Optional[str] = Field(None, max_length=255)


class LoginResponse(BaseModel):
    """Bearer token plus the user it identifies."""
    token: str
    user: User
