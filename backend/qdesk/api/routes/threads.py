"""
Thread Routes for QDesk

HTTP side of the messaging core: thread listing, history reads and the
synchronous post endpoint. Posting goes through the same ingestion gateway
as WebSocket frames.
"""

from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from qdesk.api.dependencies import ChatStoreDep, CurrentUserDep
from qdesk.domain.chat import Message, ThreadResponse


router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================

class ThreadListResponse(BaseModel):
    """Threads visible to the caller."""
    items: List[ThreadResponse]


class MessageListResponse(BaseModel):
    """Full history of a thread in append order."""
    items: List[Message] = Field(default_factory=list)


class PostMessageRequest(BaseModel):
    """
    Body of a synchronous post.

    ``text`` is optional here so an empty body reports the same
    ValidationError as an empty frame.
    """
    text: Optional[str] = None


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/threads", response_model=ThreadListResponse)
async def list_threads(user_id: CurrentUserDep, store: ChatStoreDep):
    """
    List threads visible to the current user.

    Includes unscoped threads with no members. Most recently active first.
    """
    threads = await store.threads_for(user_id)
    return ThreadListResponse(items=[ThreadResponse.from_thread(t) for t in threads])


@router.get("/threads/{thread_id}/messages", response_model=MessageListResponse)
async def get_messages(thread_id: str, user_id: CurrentUserDep, store: ChatStoreDep):
    """
    Get every message in a thread, oldest first.

    Unknown threads are created on read. No pagination.
    """
    messages = await store.history(thread_id)
    return MessageListResponse(items=list(messages))


@router.post("/threads/{thread_id}/messages", response_model=Message)
async def post_message(
    thread_id: str,
    request: PostMessageRequest,
    user_id: CurrentUserDep,
    store: ChatStoreDep,
):
    """
    Post a message and broadcast it to connections bound to the thread.

    Returns the stored message so the caller does not have to wait for its
    own echo.
    """
    return await store.ingest(thread_id, user_id, request.text)
