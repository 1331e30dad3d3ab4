"""
API Dependencies

FastAPI dependency injection for authentication and the chat core.

The ChatStore and IdentityGate are built once per application in
``create_app`` and live on ``app.state``; nothing here holds global state.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from starlette.requests import HTTPConnection

from qdesk.infrastructure.auth.identity_gate import IdentityGate
from qdesk.infrastructure.chat.chat_store import ChatStore


logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_chat_store(connection: HTTPConnection) -> ChatStore:
    """ChatStore of the running application (HTTP or WebSocket scope)."""
    return connection.app.state.chat_store


def get_identity_gate(connection: HTTPConnection) -> IdentityGate:
    """IdentityGate of the running application (HTTP or WebSocket scope)."""
    return connection.app.state.identity_gate


async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Resolve the bearer token on the request to a user id.

    Raises:
        UnauthorizedError: token missing or not resolvable (mapped to 401)
    """
    token = credentials.credentials if credentials else None
    return get_identity_gate(request).resolve(token)


ChatStoreDep = Annotated[ChatStore, Depends(get_chat_store)]
IdentityGateDep = Annotated[IdentityGate, Depends(get_identity_gate)]
CurrentUserDep = Annotated[str, Depends(get_current_user_id)]
