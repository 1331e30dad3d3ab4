"""
Auth Routes for QDesk

Passwordless email login and the current-user endpoint.
"""

from fastapi import APIRouter

from qdesk.api.dependencies import CurrentUserDep, IdentityGateDep
from qdesk.domain.users import (
    EmailLoginStartRequest,
    EmailLoginVerifyRequest,
    LoginResponse,
    User,
)


router = APIRouter()


@router.post("/auth/email/start")
async def start_email_login(request: EmailLoginStartRequest, gate: IdentityGateDep):
    """Send (log) a one-time login code for an email address."""
    gate.start_email_login(request.email)
    return {"ok": True}


@router.post("/auth/email/verify", response_model=LoginResponse)
async def verify_email_login(request: EmailLoginVerifyRequest, gate: IdentityGateDep):
    """Exchange a login code for a bearer token."""
    token, user = gate.verify_email_login(request.email, request.code, request.name)
    return LoginResponse(token=token, user=user)


@router.get("/me", response_model=User)
async def get_me(user_id: CurrentUserDep, gate: IdentityGateDep):
    """Get the authenticated user."""
    return gate.get_user(user_id)
