"""
Duplex Connection for QDesk

Wraps one live WebSocket bound to a single thread and user. Outbound frames
go through a bounded queue drained by the connection's own writer task, so a
broadcast never waits on a slow peer.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Protocol
from uuid import uuid4

from qdesk.infrastructure.exceptions import DeliveryFailure

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """
    Lifecycle of a duplex connection.

    Connecting is the handshake itself; a Connection object only exists once
    the peer has been authenticated.
    """
    AUTHENTICATED = "authenticated"
    BOUND = "bound"
    CLOSED = "closed"


class FrameTransport(Protocol):
    """The subset of a Starlette WebSocket a connection writes to."""

    async def send_json(self, data: Any) -> None: ...


class Connection:
    """
    A bound duplex channel.

    The thread and user are fixed at construction; a connection never moves
    to another thread.

    Args:
        transport: Socket the writer task sends frames on
        thread_id: Thread this connection is bound to
        user_id: Resolved identity of the peer
        queue_size: Frames buffered before deliveries start failing
        send_timeout: Seconds a single socket write may take
    """

    def __init__(
        self,
        transport: FrameTransport,
        thread_id: str,
        user_id: str,
        queue_size: int = 100,
        send_timeout: float = 5.0,
    ):
        self.id = uuid4().hex
        self.thread_id = thread_id
        self.user_id = user_id
        self.state = ConnectionState.AUTHENTICATED
        self._transport = transport
        self.send_timeout = send_timeout
        self._outbox: asyncio.Queue = asyncio.Queue(maxsize=queue_size)

    def __repr__(self) -> str:
        return (
            f"Connection(id={self.id!r}, thread_id={self.thread_id!r}, "
            f"user_id={self.user_id!r}, state={self.state.value})"
        )

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    def mark_bound(self) -> None:
        if not self.is_closed:
            self.state = ConnectionState.BOUND

    def deliver(self, frame: Dict[str, Any]) -> None:
        """
        Queue a frame for the writer task without waiting.

        Raises:
            DeliveryFailure: connection is closed or its queue is full
        """
        if self.is_closed:
            raise DeliveryFailure(
                "connection closed",
                thread_id=self.thread_id,
                user_id=self.user_id,
            )
        try:
            self._outbox.put_nowait(frame)
        except asyncio.QueueFull as e:
            raise DeliveryFailure(
                "outbound queue full",
                thread_id=self.thread_id,
                user_id=self.user_id,
                original_error=e,
            )

    async def run_writer(self) -> None:
        """
        Drain queued frames onto the socket until closed or a write fails.

        A write that errors or exceeds ``send_timeout`` closes the connection.
        """
        while not self.is_closed:
            frame = await self._outbox.get()
            try:
                await asyncio.wait_for(
                    self._transport.send_json(frame),
                    timeout=self.send_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(f"Send timed out on {self!r}; closing")
                self.close()
            except Exception as e:
                logger.warning(f"Send failed on {self!r}: {e}")
                self.close()

    def pending(self) -> int:
        """Number of frames waiting for the writer."""
        return self._outbox.qsize()

    def close(self) -> None:
        """Mark the connection closed. Safe to call more than once."""
        self.state = ConnectionState.CLOSED
