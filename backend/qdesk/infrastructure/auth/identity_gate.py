"""
Identity Gate for QDesk

Maps opaque bearer credentials to user identities. The messaging core only
calls ``resolve``; the passwordless email login below exists so the service
can issue credentials on its own in development.

Tokens are HS256 JWTs signed with ``AUTH_SECRET``. Never decode without
verification.
"""

import logging
import secrets
import time
from typing import Dict, Optional, Tuple

import jwt

from qdesk.config.settings import Settings, get_settings
from qdesk.domain.users import User
from qdesk.infrastructure.exceptions import (
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"


class IdentityGate:
    """
    In-memory user directory plus token issuance and verification.

    Args:
        settings: Supplies the signing secret, token TTL and code length
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        self._users: Dict[str, User] = {}
        self._user_ids_by_email: Dict[str, str] = {}
        self._pending_codes: Dict[str, str] = {}

    # =========================================================================
    # Credential resolution
    # =========================================================================

    def resolve(self, token: Optional[str]) -> str:
        """
        Resolve a bearer token to a user id.

        Raises:
            UnauthorizedError: token missing, expired, forged, or for an
                unknown user
        """
        if not token:
            raise UnauthorizedError("Missing authorization token")

        try:
            payload = jwt.decode(
                token,
                self._settings.auth_secret,
                algorithms=[TOKEN_ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise UnauthorizedError("Token has expired", original_error=e)
        except jwt.InvalidTokenError as e:
            logger.debug("Token verification failed: %s", e)
            raise UnauthorizedError("Invalid or unverifiable token", original_error=e)

        user_id = payload.get("sub")
        if not user_id or user_id not in self._users:
            raise UnauthorizedError("invalid user")

        return user_id

    def issue_token(self, user_id: str) -> str:
        """Sign a bearer token for an existing user."""
        if user_id not in self._users:
            raise NotFoundError("User not found", resource="user", resource_id=user_id)

        now = int(time.time())
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + self._settings.auth_token_ttl_seconds,
        }
        return jwt.encode(payload, self._settings.auth_secret, algorithm=TOKEN_ALGORITHM)

    def get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found", resource="user", resource_id=user_id)
        return user

    # =========================================================================
    # Email login
    # =========================================================================

    def start_email_login(self, email: Optional[str]) -> str:
        """
        Issue a one-time numeric code for ``email``.

        The code is logged in place of sending an email. A new request
        replaces any earlier code for the same address.
        """
        if not email:
            raise ValidationError("email required", field="email")

        length = self._settings.auth_code_length
        code = str(10 ** (length - 1) + secrets.randbelow(9 * 10 ** (length - 1)))
        self._pending_codes[email] = code

        logger.info(f"[AUTH] Code for {email}: {code}")
        return code

    def verify_email_login(
        self,
        email: Optional[str],
        code: Optional[str],
        name: Optional[str] = None,
    ) -> Tuple[str, User]:
        """
        Exchange a one-time code for a bearer token.

        Codes are single use. The user is created on first successful login.

        Returns:
            (token, user)
        """
        if not email or not code:
            raise ValidationError("email & code required")

        expected = self._pending_codes.get(email)
        if expected is None or not secrets.compare_digest(
            expected.encode("utf-8"), str(code).encode("utf-8")
        ):
            raise ValidationError("invalid code", field="code")
        del self._pending_codes[email]

        user = self._ensure_user(email)
        if name:
            user = user.model_copy(update={"name": name})
            self._users[user.id] = user

        return self.issue_token(user.id), user

    def _ensure_user(self, email: str) -> User:
        user_id = self._user_ids_by_email.get(email)
        if user_id is not None:
            return self._users[user_id]

        user = User(
            id=f"u_{secrets.token_urlsafe(6)}",
            email=email,
            name=email.split("@")[0],
        )
        self._users[user.id] = user
        self._user_ids_by_email[email] = user.id
        logger.info(f"Created user {user.id} for {email}")
        return user
