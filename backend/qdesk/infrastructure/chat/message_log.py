"""
Message Log for QDesk

Append-only, per-thread ordered message history held in memory.
"""

import asyncio
from typing import Dict, List, Tuple

from qdesk.domain.chat import Message


class MessageLog:
    """
    Per-thread message sequences.

    Ordering is the order in which ``append`` calls were accepted; messages
    are never re-sorted by timestamp, so equal or out-of-order timestamps
    keep their arrival position.
    """

    def __init__(self):
        self._messages: Dict[str, List[Message]] = {}
        self._lock = asyncio.Lock()

    async def append(self, thread_id: str, message: Message) -> None:
        """Append a message to the end of the thread's log."""
        async with self._lock:
            self._messages.setdefault(thread_id, []).append(message)

    async def list(self, thread_id: str) -> Tuple[Message, ...]:
        """
        Read-only snapshot of the thread's messages in append order.

        Unknown threads yield an empty tuple.
        """
        async with self._lock:
            return tuple(self._messages.get(thread_id, ()))

    async def count(self, thread_id: str) -> int:
        async with self._lock:
            return len(self._messages.get(thread_id, ()))
