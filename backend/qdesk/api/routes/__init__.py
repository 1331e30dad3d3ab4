# API Routes Module
from qdesk.api.routes import (
    auth,
    threads,
    chat_socket,
)

__all__ = [
    "auth",
    "threads",
    "chat_socket",
]
