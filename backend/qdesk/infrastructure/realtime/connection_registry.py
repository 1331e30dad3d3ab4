"""
Connection Registry for QDesk

Tracks which live connections are subscribed to which thread.
"""

import asyncio
import logging
from typing import Dict, List, Set

from qdesk.infrastructure.exceptions import ValidationError
from qdesk.infrastructure.realtime.connection import Connection

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    thread_id -> set of bound connections.

    Several connections may share a thread, including several from the same
    user. Registration and removal are serialized by one asyncio lock.
    """

    def __init__(self):
        self._connections: Dict[str, Set[Connection]] = {}
        self._lock = asyncio.Lock()

    async def register(self, thread_id: str, connection: Connection) -> None:
        """
        Subscribe a connection to its thread.

        Raises:
            ValidationError: the connection is bound to a different thread
        """
        if connection.thread_id != thread_id:
            raise ValidationError(
                f"connection is bound to thread {connection.thread_id}, not {thread_id}",
                field="threadId",
            )

        async with self._lock:
            self._connections.setdefault(thread_id, set()).add(connection)
            total = len(self._connections[thread_id])

        logger.debug(f"Registered {connection!r} ({total} on thread)")

    async def unregister(self, thread_id: str, connection: Connection) -> bool:
        """
        Remove a connection from a thread.

        No-op for connections that were never registered or already removed.

        Returns:
            True if the connection was removed by this call
        """
        async with self._lock:
            connections = self._connections.get(thread_id)
            if not connections or connection not in connections:
                return False
            connections.discard(connection)
            if not connections:
                self._connections.pop(thread_id, None)

        logger.debug(f"Unregistered {connection!r}")
        return True

    async def connections_for(self, thread_id: str) -> List[Connection]:
        """Snapshot of connections currently registered for a thread."""
        async with self._lock:
            return list(self._connections.get(thread_id, ()))

    async def count(self, thread_id: str) -> int:
        async with self._lock:
            return len(self._connections.get(thread_id, ()))
