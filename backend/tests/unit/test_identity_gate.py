"""
Security Test Suite: Identity Gate

Tests that the identity gate correctly:
- Issues single-use email login codes
- Signs tokens that resolve back to the user
- Rejects missing, malformed, expired and foreign-signed tokens
"""

import time

import jwt
import pytest

from qdesk.config.settings import Settings
from qdesk.infrastructure.auth.identity_gate import IdentityGate, TOKEN_ALGORITHM
from qdesk.infrastructure.exceptions import (
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)


@pytest.fixture
def gate(test_settings):
    return IdentityGate(test_settings)


class TestEmailLogin:

    def test_code_has_configured_length(self, gate, test_settings):
        code = gate.start_email_login("a@example.com")

        assert code.isdigit()
        assert len(code) == test_settings.auth_code_length

    def test_start_requires_email(self, gate):
        with pytest.raises(ValidationError):
            gate.start_email_login("")

    def test_verify_creates_user(self, gate):
        code = gate.start_email_login("bob@example.com")

        token, user = gate.verify_email_login("bob@example.com", code)

        assert user.id.startswith("u_")
        assert user.email == "bob@example.com"
        assert user.name == "bob"
        assert gate.resolve(token) == user.id

    def test_verify_sets_name(self, gate):
        code = gate.start_email_login("bob@example.com")

        _, user = gate.verify_email_login("bob@example.com", code, name="Robert")

        assert user.name == "Robert"
        assert gate.get_user(user.id).name == "Robert"

    def test_same_email_same_user(self, gate):
        _, first = gate.verify_email_login("c@example.com", gate.start_email_login("c@example.com"))
        _, second = gate.verify_email_login("c@example.com", gate.start_email_login("c@example.com"))

        assert first.id == second.id

    def test_code_is_single_use(self, gate):
        code = gate.start_email_login("d@example.com")
        gate.verify_email_login("d@example.com", code)

        with pytest.raises(ValidationError):
            gate.verify_email_login("d@example.com", code)

    def test_wrong_code_rejected(self, gate):
        code = gate.start_email_login("e@example.com")
        wrong = "0" * len(code) if code != "0" * len(code) else "1" * len(code)

        with pytest.raises(ValidationError) as exc_info:
            gate.verify_email_login("e@example.com", wrong)

        assert exc_info.value.message == "invalid code"

    def test_verify_requires_email_and_code(self, gate):
        with pytest.raises(ValidationError):
            gate.verify_email_login("e@example.com", None)


class TestResolve:

    def test_missing_token(self, gate):
        with pytest.raises(UnauthorizedError):
            gate.resolve(None)

    def test_garbage_token(self, gate):
        with pytest.raises(UnauthorizedError):
            gate.resolve("not.a.jwt")

    def test_token_signed_with_other_secret(self, gate):
        _, user = gate.verify_email_login("f@example.com", gate.start_email_login("f@example.com"))
        forged = jwt.encode(
            {"sub": user.id, "exp": int(time.time()) + 60},
            "some-other-secret",
            algorithm=TOKEN_ALGORITHM,
        )

        with pytest.raises(UnauthorizedError):
            gate.resolve(forged)

    def test_expired_token(self, gate, test_settings):
        _, user = gate.verify_email_login("g@example.com", gate.start_email_login("g@example.com"))
        expired = jwt.encode(
            {"sub": user.id, "exp": int(time.time()) - 10},
            test_settings.auth_secret,
            algorithm=TOKEN_ALGORITHM,
        )

        with pytest.raises(UnauthorizedError) as exc_info:
            gate.resolve(expired)

        assert exc_info.value.message == "Token has expired"

    def test_unknown_user(self, gate, test_settings):
        token = jwt.encode(
            {"sub": "u_ghost", "exp": int(time.time()) + 60},
            test_settings.auth_secret,
            algorithm=TOKEN_ALGORITHM,
        )

        with pytest.raises(UnauthorizedError):
            gate.resolve(token)

    def test_token_from_other_gate_instance(self, test_settings):
        """Users live in one gate; a second gate does not know them."""
        first = IdentityGate(test_settings)
        token, _ = first.verify_email_login("h@example.com", first.start_email_login("h@example.com"))

        with pytest.raises(UnauthorizedError):
            IdentityGate(Settings(auth_secret=test_settings.auth_secret)).resolve(token)


class TestUsers:

    def test_get_unknown_user(self, gate):
        with pytest.raises(NotFoundError):
            gate.get_user("u_missing")

    def test_issue_token_for_unknown_user(self, gate):
        with pytest.raises(NotFoundError):
            gate.issue_token("u_missing")
