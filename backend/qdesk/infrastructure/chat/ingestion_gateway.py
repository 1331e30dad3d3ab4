"""
Message Ingestion Gateway for QDesk

The one write path for chat messages. Both the HTTP post endpoint and the
WebSocket frame handler call ``ingest``; neither touches the log, directory
or router directly.
"""

import asyncio
import logging
from typing import Callable, Dict

from qdesk.domain.chat import Message, now_ms
from qdesk.infrastructure.chat.message_log import MessageLog
from qdesk.infrastructure.chat.thread_directory import ThreadDirectory
from qdesk.infrastructure.exceptions import UnauthorizedError, ValidationError
from qdesk.infrastructure.realtime.broadcast_router import BroadcastRouter

logger = logging.getLogger(__name__)


class MessageIngestionGateway:
    """
    Validates, logs and broadcasts one message as a single step per thread.

    Ingestions on the same thread are serialized by a per-thread lock, so
    append order, activity time, membership and broadcast order all agree.
    Different threads proceed independently.

    Args:
        directory: ThreadDirectory holding membership and activity
        log: MessageLog receiving the message
        router: BroadcastRouter fanning the message out
        clock: Timestamp source in epoch milliseconds
    """

    def __init__(
        self,
        directory: ThreadDirectory,
        log: MessageLog,
        router: BroadcastRouter,
        clock: Callable[[], int] = now_ms,
    ):
        self._directory = directory
        self._log = log
        self._router = router
        self._clock = clock
        self._thread_locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, thread_id: str) -> asyncio.Lock:
        lock = self._thread_locks.get(thread_id)
        if lock is None:
            lock = self._thread_locks.setdefault(thread_id, asyncio.Lock())
        return lock

    async def ingest(self, thread_id: str, user_id: str, text: str) -> Message:
        """
        Accept a message from ``user_id`` into ``thread_id``.

        Steps: get-or-create the thread, append, bump last activity, add the
        sender as a member, broadcast. Once accepted the call always runs to
        completion; delivery problems never surface here.

        Returns:
            The created Message, timestamp included

        Raises:
            UnauthorizedError: no resolved caller identity
            ValidationError: empty thread id or text
        """
        if not user_id:
            raise UnauthorizedError()
        if not thread_id:
            raise ValidationError("threadId required", field="threadId")
        if not isinstance(text, str) or not text:
            raise ValidationError("text required", field="text")

        # a closing socket or dropped request must not cut the sequence short
        return await asyncio.shield(self._ingest_locked(thread_id, user_id, text))

    async def _ingest_locked(self, thread_id: str, user_id: str, text: str) -> Message:
        async with self._lock_for(thread_id):
            await self._directory.get_or_create(thread_id)
            message = Message(sender=user_id, text=text, ts=self._clock())
            await self._log.append(thread_id, message)
            await self._directory.touch(thread_id, message.ts)
            await self._directory.add_member(thread_id, user_id)
            delivered = await self._router.broadcast(thread_id, message)

        logger.debug(
            f"Ingested message from {user_id} on thread {thread_id} "
            f"(delivered to {delivered} connections)"
        )
        return message
