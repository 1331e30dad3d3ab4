"""
Realtime Infrastructure Package for QDesk

Exports duplex connections, the connection registry and the broadcast router.
"""

from qdesk.infrastructure.realtime.connection import (
    Connection,
    ConnectionState,
    FrameTransport,
)
from qdesk.infrastructure.realtime.connection_registry import ConnectionRegistry
from qdesk.infrastructure.realtime.broadcast_router import BroadcastRouter


__all__ = [
    "Connection",
    "ConnectionState",
    "FrameTransport",
    "ConnectionRegistry",
    "BroadcastRouter",
]
