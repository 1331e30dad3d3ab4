"""
Test configuration and fixtures for QDesk.

Provides shared fixtures for unit and integration tests. Every test gets a
freshly built application so thread, message and connection state never
leaks between cases.
"""

import asyncio
from typing import Any, List

import pytest
from fastapi.testclient import TestClient

from qdesk.config.settings import Settings
from qdesk.infrastructure.chat.chat_store import ChatStore
from qdesk.infrastructure.realtime.connection import Connection
from qdesk.main import create_app


# =============================================================================
# Fakes
# =============================================================================

class RecordingTransport:
    """Stand-in for a WebSocket that records every frame sent to it."""

    def __init__(self):
        self.sent: List[Any] = []

    async def send_json(self, data: Any) -> None:
        self.sent.append(data)


class BrokenTransport:
    """Stand-in for a half-closed WebSocket whose writes always fail."""

    def __init__(self):
        self.attempts = 0

    async def send_json(self, data: Any) -> None:
        self.attempts += 1
        raise RuntimeError("Cannot call 'send' once a close message has been sent.")


class StalledTransport:
    """Stand-in for a peer that never finishes reading."""

    async def send_json(self, data: Any) -> None:
        await asyncio.sleep(3600)


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def test_settings():
    """Settings with a short send timeout and a small queue."""
    return Settings(
        environment="testing",
        auth_secret="test-secret",
        broadcast_queue_size=32,
        broadcast_send_timeout=0.2,
    )


@pytest.fixture
def app(test_settings):
    """Get an isolated FastAPI application."""
    return create_app(test_settings)


@pytest.fixture
def client(app):
    """
    Get synchronous test client.

    Used as a context manager so HTTP calls and WebSocket sessions share
    one event loop.
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def identity_gate(app):
    return app.state.identity_gate


@pytest.fixture
def chat_store(test_settings):
    """A standalone ChatStore for unit tests."""
    return ChatStore(test_settings)


# =============================================================================
# Auth Fixtures
# =============================================================================

def login(gate, email: str, name: str = None):
    """Run the email code flow against a gate and return (token, user)."""
    code = gate.start_email_login(email)
    return gate.verify_email_login(email, code, name)


@pytest.fixture
def login_as(identity_gate):
    """Factory fixture: login_as(email) -> (token, user)."""
    def _login(email: str, name: str = None):
        return login(identity_gate, email, name)
    return _login


@pytest.fixture
def auth_session(login_as):
    token, user = login_as("alice@example.com")
    return token, user


@pytest.fixture
def mock_user_id(auth_session):
    return auth_session[1].id


@pytest.fixture
def auth_headers(auth_session):
    return {"Authorization": f"Bearer {auth_session[0]}"}


# =============================================================================
# Connection Fixtures
# =============================================================================

@pytest.fixture
def make_connection(test_settings):
    """
    Factory fixture: make_connection(thread_id, user_id, transport=None)
    -> (connection, transport). Defaults to a RecordingTransport.
    """
    def _make(thread_id: str = "t1", user_id: str = "u_alice", transport=None):
        transport = transport if transport is not None else RecordingTransport()
        connection = Connection(
            transport,
            thread_id=thread_id,
            user_id=user_id,
            queue_size=test_settings.broadcast_queue_size,
            send_timeout=test_settings.broadcast_send_timeout,
        )
        return connection, transport
    return _make


@pytest.fixture
def broken_transport():
    return BrokenTransport()


@pytest.fixture
def stalled_transport():
    return StalledTransport()
