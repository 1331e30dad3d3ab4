"""
Thread Directory for QDesk

Keyed in-memory store of conversation threads. Threads are created lazily on
first reference and live for the lifetime of the process.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Dict, List, Optional

from qdesk.domain.chat import Thread
from qdesk.infrastructure.exceptions import ValidationError

logger = logging.getLogger(__name__)


class ThreadDirectory:
    """
    Registry of threads keyed by thread id.

    All mutations happen under a single asyncio lock, so get-or-create never
    hands out a second instance for the same id and membership updates are
    visible to every later read.
    """

    def __init__(self):
        self._threads: Dict[str, Thread] = {}
        self._lock = asyncio.Lock()

    async def get_or_create(self, thread_id: str) -> Thread:
        """
        Return the thread for ``thread_id``, creating it on first reference.

        Raises:
            ValidationError: thread_id is empty
        """
        if not thread_id:
            raise ValidationError("threadId required", field="threadId")

        async with self._lock:
            return self._get_or_create_locked(thread_id)

    async def get(self, thread_id: str) -> Optional[Thread]:
        """Snapshot of a thread, or None if it was never referenced."""
        async with self._lock:
            thread = self._threads.get(thread_id)
            return self._snapshot(thread) if thread else None

    async def add_member(self, thread_id: str, user_id: str) -> bool:
        """
        Add ``user_id`` to the thread's members.

        Creates the thread if needed. There is no removal counterpart.

        Returns:
            True if the user was newly added, False if already a member
        """
        if not thread_id:
            raise ValidationError("threadId required", field="threadId")

        async with self._lock:
            thread = self._get_or_create_locked(thread_id)
            if thread.has_member(user_id):
                return False
            thread.members.append(user_id)

        logger.debug(f"User {user_id} joined thread {thread_id}")
        return True

    async def touch(self, thread_id: str, ts: int) -> None:
        """Advance the thread's last-activity timestamp; never moves it back."""
        async with self._lock:
            thread = self._get_or_create_locked(thread_id)
            if ts > thread.last_ts:
                thread.last_ts = ts

    async def list_for_user(self, user_id: str) -> List[Thread]:
        """
        Threads visible to a user, most recently active first.

        A thread is visible when it has no members yet or the user is one.
        """
        async with self._lock:
            visible = [
                self._snapshot(t)
                for t in self._threads.values()
                if t.is_visible_to(user_id)
            ]
        visible.sort(key=lambda t: t.last_ts, reverse=True)
        return visible

    def _get_or_create_locked(self, thread_id: str) -> Thread:
        thread = self._threads.get(thread_id)
        if thread is None:
            thread = Thread(id=thread_id)
            self._threads[thread_id] = thread
            logger.info(f"Created thread {thread_id}")
        return thread

    @staticmethod
    def _snapshot(thread: Thread) -> Thread:
        return replace(thread, members=list(thread.members))
