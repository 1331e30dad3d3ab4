"""
Chat Domain Models for QDesk

Pure Python/Pydantic models for threads, messages and socket frames.
Field aliases carry the camelCase wire names used by the web client.
"""

import time
from dataclasses import dataclass, field
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class Message(BaseModel):
    """A single chat message; immutable once appended to a thread log."""
    sender: str = Field(..., alias="from")
    text: str = Field(..., min_length=1)
    ts: int

    model_config = ConfigDict(frozen=True, populate_by_name=True)


@dataclass
class Thread:
    """
    Conversation thread record owned by the ThreadDirectory.

    Members keep insertion order and are never removed.
    """
    id: str
    members: List[str] = field(default_factory=list)
    last_ts: int = 0

    def has_member(self, user_id: str) -> bool:
        return user_id in self.members

    def is_visible_to(self, user_id: str) -> bool:
        """Unscoped threads (no members yet) are visible to everyone."""
        return not self.members or user_id in self.members


class ThreadResponse(BaseModel):
    """Read-only view of a thread returned by the API."""
    id: str
    members: List[str] = Field(default_factory=list)
    last_ts: int = Field(0, alias="lastTs")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_thread(cls, thread: Thread) -> "ThreadResponse":
        return cls(id=thread.id, members=list(thread.members), last_ts=thread.last_ts)


# ============================================================================
# Socket Frames
# ============================================================================

class HelloFrame(BaseModel):
    """Greeting sent once when a connection becomes bound."""
    type: Literal["hello"] = "hello"
    thread_id: str = Field(..., alias="threadId")
    user_id: str = Field(..., alias="userId")

    model_config = ConfigDict(populate_by_name=True)


class MessageFrame(BaseModel):
    """Outbound frame carrying one ingested message."""
    type: Literal["message"] = "message"
    payload: Message


class InboundFrame(BaseModel):
    """Frame accepted from a bound connection."""
    text: StrictStr = Field(..., min_length=1)
