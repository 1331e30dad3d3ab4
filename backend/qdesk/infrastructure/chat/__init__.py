"""
Chat Infrastructure Package for QDesk

Exports the in-memory thread directory, message log, ingestion gateway and
the ChatStore that wires them together.
"""

from qdesk.infrastructure.chat.thread_directory import ThreadDirectory
from qdesk.infrastructure.chat.message_log import MessageLog
from qdesk.infrastructure.chat.ingestion_gateway import MessageIngestionGateway
from qdesk.infrastructure.chat.chat_store import ChatStore


__all__ = [
    "ThreadDirectory",
    "MessageLog",
    "MessageIngestionGateway",
    "ChatStore",
]
