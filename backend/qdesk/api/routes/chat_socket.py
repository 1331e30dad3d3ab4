"""
Chat WebSocket for QDesk

Duplex side of the messaging core. A socket goes through
Connecting -> Authenticated -> Bound -> Closed:

- handshake: ``threadId`` and ``token`` query parameters (or a bearer
  header); anything missing or invalid is accepted and then closed with
  1008 "unauthorized", never reaching bound
- bound: registered for broadcasts, greeted with a hello frame, and every
  ``{"text": ...}`` frame is ingested through the shared gateway
- closed: always deregistered, whichever side ended the session
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, status
from pydantic import ValidationError as PydanticValidationError
from starlette.websockets import WebSocketState

from qdesk.api.dependencies import ChatStoreDep, IdentityGateDep
from qdesk.domain.chat import InboundFrame, Message
from qdesk.infrastructure.chat.chat_store import ChatStore
from qdesk.infrastructure.exceptions import UnauthorizedError, ValidationError
from qdesk.infrastructure.realtime.connection import Connection


logger = logging.getLogger(__name__)

router = APIRouter()


def _handshake_token(websocket: WebSocket) -> Optional[str]:
    token = websocket.query_params.get("token")
    if token:
        return token
    header = websocket.headers.get("authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):]
    return None


async def handle_frame(store: ChatStore, connection: Connection, raw: str) -> Optional[Message]:
    """
    Ingest one inbound frame.

    Malformed frames (bad JSON, wrong shape, empty text) are dropped and the
    connection stays bound.
    """
    try:
        frame = InboundFrame.model_validate_json(raw)
    except PydanticValidationError:
        logger.debug(f"Discarded malformed frame on {connection!r}")
        return None

    try:
        return await store.ingest(connection.thread_id, connection.user_id, frame.text)
    except ValidationError as e:
        logger.debug(f"Discarded frame on {connection!r}: {e.message}")
        return None


async def _read_frames(websocket: WebSocket, store: ChatStore, connection: Connection) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return

        raw = message.get("text")
        if raw is None and message.get("bytes") is not None:
            raw = message["bytes"].decode("utf-8", errors="replace")
        if raw is None:
            continue

        await handle_frame(store, connection, raw)


async def serve_connection(
    websocket: WebSocket,
    store: ChatStore,
    thread_id: str,
    user_id: str,
) -> None:
    """
    Run a bound connection until either direction ends.

    Reader and writer run as sibling tasks; when one finishes the other is
    cancelled and the connection is released.
    """
    connection = store.open_connection(websocket, thread_id, user_id)
    tasks = []
    try:
        await store.bind(connection)
        tasks = [
            asyncio.create_task(_read_frames(websocket, store, connection)),
            asyncio.create_task(connection.run_writer()),
        ]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.warning(
                    f"Connection task failed on {connection!r}: {task.exception()}"
                )
    finally:
        for task in tasks:
            task.cancel()
        # deregistration has to finish even when this coroutine is cancelled
        await asyncio.shield(store.release(connection))
        await asyncio.gather(*tasks, return_exceptions=True)

    await close_socket(websocket, connection)


async def close_socket(websocket: WebSocket, connection: Connection) -> None:
    """Close the socket if still open, giving up after the send timeout."""
    if websocket.application_state == WebSocketState.DISCONNECTED or \
            websocket.client_state == WebSocketState.DISCONNECTED:
        return

    try:
        await asyncio.wait_for(websocket.close(), timeout=connection.send_timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Close timed out on {connection!r}")
    except (RuntimeError, OSError) as e:
        logger.debug(f"Close after release failed on {connection!r}: {e}")


@router.websocket("/chat")
async def chat_socket(websocket: WebSocket, store: ChatStoreDep, gate: IdentityGateDep):
    """Duplex chat channel bound to one thread."""
    thread_id = websocket.query_params.get("threadId")

    try:
        if not thread_id:
            raise UnauthorizedError("threadId required")
        user_id = gate.resolve(_handshake_token(websocket))
    except UnauthorizedError as e:
        logger.warning(f"Rejected chat handshake for thread {thread_id!r}: {e.message}")
        # closing before accept would surface as an HTTP 403, not a 1008 close
        await websocket.accept()
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="unauthorized")
        return

    await websocket.accept()
    await serve_connection(websocket, store, thread_id, user_id)
    logger.info(f"Closed chat connection for {user_id} on thread {thread_id}")
