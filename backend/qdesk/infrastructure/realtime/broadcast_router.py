"""
Broadcast Router for QDesk

Fans one message out to every connection registered for its thread.

Delivery policy:
- the sender's own connections are included; clients drop echoes themselves
- each recipient is attempted independently and never retried
- failures are logged and swallowed, the caller never sees them
"""

import logging

from qdesk.domain.chat import Message, MessageFrame
from qdesk.infrastructure.exceptions import DeliveryFailure
from qdesk.infrastructure.realtime.connection_registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class BroadcastRouter:
    """Best-effort, fire-and-forget fan-out over the ConnectionRegistry."""

    def __init__(self, registry: ConnectionRegistry):
        self._registry = registry

    async def broadcast(self, thread_id: str, message: Message) -> int:
        """
        Queue ``message`` on every connection currently bound to the thread.

        Returns:
            Number of connections that accepted the frame
        """
        recipients = await self._registry.connections_for(thread_id)
        if not recipients:
            return 0

        frame = MessageFrame(payload=message).model_dump(by_alias=True)
        delivered = 0

        for connection in recipients:
            try:
                connection.deliver(frame)
                delivered += 1
            except DeliveryFailure as e:
                logger.debug(f"Dropped frame for {connection!r}: {e.message}")
            except Exception as e:
                logger.warning(
                    f"Unexpected delivery error for {connection!r}: {e}",
                    exc_info=True,
                )

        return delivered
