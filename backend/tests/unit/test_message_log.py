"""
Unit tests for the MessageLog.
"""

import asyncio

import pytest
from pydantic import ValidationError as PydanticValidationError

from qdesk.domain.chat import Message
from qdesk.infrastructure.chat.message_log import MessageLog


def _message(text: str, ts: int = 1000, sender: str = "u_a") -> Message:
    return Message(sender=sender, text=text, ts=ts)


class TestMessageLog:

    @pytest.mark.asyncio
    async def test_unknown_thread_is_empty(self):
        assert await MessageLog().list("nope") == ()

    @pytest.mark.asyncio
    async def test_preserves_append_order_over_timestamps(self):
        """Out-of-order and equal timestamps keep their arrival position."""
        log = MessageLog()

        await log.append("t1", _message("first", ts=300))
        await log.append("t1", _message("second", ts=100))
        await log.append("t1", _message("third", ts=100))

        texts = [m.text for m in await log.list("t1")]
        assert texts == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_threads_are_independent(self):
        log = MessageLog()

        await log.append("t1", _message("a"))
        await log.append("t2", _message("b"))

        assert [m.text for m in await log.list("t1")] == ["a"]
        assert [m.text for m in await log.list("t2")] == ["b"]

    @pytest.mark.asyncio
    async def test_list_is_a_snapshot(self):
        log = MessageLog()
        await log.append("t1", _message("a"))

        snapshot = await log.list("t1")
        await log.append("t1", _message("b"))

        assert len(snapshot) == 1
        assert await log.count("t1") == 2

    @pytest.mark.asyncio
    async def test_concurrent_appends_lose_nothing(self):
        log = MessageLog()

        await asyncio.gather(*[log.append("t1", _message(f"m{i}")) for i in range(200)])

        texts = [m.text for m in await log.list("t1")]
        assert len(texts) == 200
        assert set(texts) == {f"m{i}" for i in range(200)}

    def test_messages_are_immutable(self):
        message = _message("hi")

        with pytest.raises(PydanticValidationError):
            message.text = "edited"

    def test_message_serializes_with_wire_names(self):
        message = _message("hi", ts=42, sender="u_b")

        assert message.model_dump(by_alias=True) == {"from": "u_b", "text": "hi", "ts": 42}
