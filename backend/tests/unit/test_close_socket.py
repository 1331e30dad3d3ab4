"""
Unit tests for closing a chat socket after its connection is released.
"""

import asyncio

import pytest
from starlette.websockets import WebSocketState

from qdesk.api.routes.chat_socket import close_socket


class HangingSocket:
    """Socket whose close handshake never completes."""

    def __init__(self):
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED
        self.close_calls = 0

    async def close(self, code: int = 1000, reason=None) -> None:
        self.close_calls += 1
        await asyncio.sleep(3600)


class TestCloseSocket:

    @pytest.mark.asyncio
    async def test_stalled_close_gives_up_after_send_timeout(self, make_connection):
        connection, _ = make_connection()
        socket = HangingSocket()

        await asyncio.wait_for(close_socket(socket, connection), timeout=2.0)

        assert socket.close_calls == 1

    @pytest.mark.asyncio
    async def test_already_disconnected_socket_is_left_alone(self, make_connection):
        connection, _ = make_connection()
        socket = HangingSocket()
        socket.client_state = WebSocketState.DISCONNECTED

        await close_socket(socket, connection)

        assert socket.close_calls == 0
