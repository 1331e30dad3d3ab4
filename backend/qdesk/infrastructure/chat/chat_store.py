"""
Chat Store for QDesk

Composition root for the messaging core. One instance is built per
application at startup and handed to the API layer; tests build their own.
"""

import logging
from typing import List, Optional, Tuple

from qdesk.config.settings import Settings, get_settings
from qdesk.domain.chat import HelloFrame, Message, Thread
from qdesk.infrastructure.chat.ingestion_gateway import MessageIngestionGateway
from qdesk.infrastructure.chat.message_log import MessageLog
from qdesk.infrastructure.chat.thread_directory import ThreadDirectory
from qdesk.infrastructure.realtime.broadcast_router import BroadcastRouter
from qdesk.infrastructure.realtime.connection import Connection, FrameTransport
from qdesk.infrastructure.realtime.connection_registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class ChatStore:
    """
    Wires the thread directory, message log, connection registry, broadcast
    router and ingestion gateway together.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        self.directory = ThreadDirectory()
        self.log = MessageLog()
        self.registry = ConnectionRegistry()
        self.router = BroadcastRouter(self.registry)
        self.gateway = MessageIngestionGateway(self.directory, self.log, self.router)

    # =========================================================================
    # Reads
    # =========================================================================

    async def history(self, thread_id: str) -> Tuple[Message, ...]:
        """Full message sequence of a thread, creating the thread if new."""
        await self.directory.get_or_create(thread_id)
        return await self.log.list(thread_id)

    async def threads_for(self, user_id: str) -> List[Thread]:
        return await self.directory.list_for_user(user_id)

    # =========================================================================
    # Writes
    # =========================================================================

    async def ingest(self, thread_id: str, user_id: str, text: str) -> Message:
        return await self.gateway.ingest(thread_id, user_id, text)

    def open_connection(
        self,
        transport: FrameTransport,
        thread_id: str,
        user_id: str,
    ) -> Connection:
        """Create an authenticated, not yet bound, connection."""
        return Connection(
            transport,
            thread_id=thread_id,
            user_id=user_id,
            queue_size=self._settings.broadcast_queue_size,
            send_timeout=self._settings.broadcast_send_timeout,
        )

    async def bind(self, connection: Connection) -> None:
        """
        Move a connection from Authenticated to Bound.

        The greeting is queued before registration so it is always the first
        frame the peer sees.
        """
        await self.directory.get_or_create(connection.thread_id)
        hello = HelloFrame(thread_id=connection.thread_id, user_id=connection.user_id)
        connection.deliver(hello.model_dump(by_alias=True))
        await self.registry.register(connection.thread_id, connection)
        await self.directory.add_member(connection.thread_id, connection.user_id)
        connection.mark_bound()
        logger.info(f"Bound {connection!r}")

    async def release(self, connection: Connection) -> None:
        """Close and deregister a connection. Idempotent."""
        connection.close()
        removed = await self.registry.unregister(connection.thread_id, connection)
        if removed:
            logger.info(f"Released {connection!r}")
