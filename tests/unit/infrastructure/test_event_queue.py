"""Tests for EventQueue."""

import asyncio

import pytest

from topicrelay.domain.entities.event import MentionEvent, ThreadMessageEvent
from topicrelay.infrastructure.event_queue import EventQueue


def mention(ts: str = "1.0") -> MentionEvent:
    return MentionEvent(text="<@U0BOT> hi", channel="C1", ts=ts)


class TestEventQueue:
    """Tests for EventQueue class."""

    async def test_basic_enqueue_dequeue(self) -> None:
        queue = EventQueue()
        event = mention()

        assert await queue.enqueue(event) is True
        result = await queue.dequeue()

        assert result.id == event.id

    async def test_first_delivery_wins(self) -> None:
        """A second event with the same identity key is dropped."""
        queue = EventQueue()
        first = mention()
        second = ThreadMessageEvent(
            text="<@U0BOT> hi", channel="C1", ts="1.0", thread_ts="0.5"
        )

        assert await queue.enqueue(first) is True
        assert await queue.enqueue(second) is False

        result = await queue.dequeue()
        assert result.id == first.id

        with pytest.raises(TimeoutError):
            async with asyncio.timeout(0.1):
                await queue.dequeue()

    async def test_duplicate_while_processing_dropped(self) -> None:
        queue = EventQueue()
        await queue.enqueue(mention())
        await queue.dequeue()

        assert await queue.enqueue(mention()) is False

    async def test_duplicate_after_completion_dropped(self) -> None:
        queue = EventQueue()
        await queue.enqueue(mention())
        event = await queue.dequeue()
        queue.mark_done(event)

        assert await queue.enqueue(mention()) is False

    async def test_completed_history_is_bounded(self) -> None:
        """Old keys are forgotten once the history is full."""
        queue = EventQueue(history_size=2)
        for ts in ("1.0", "2.0", "3.0"):
            await queue.enqueue(mention(ts))
            queue.mark_done(await queue.dequeue())

        assert await queue.enqueue(mention("1.0")) is True
        assert await queue.enqueue(mention("3.0")) is False

    async def test_different_messages_both_enqueued(self) -> None:
        queue = EventQueue()

        assert await queue.enqueue(mention("1.0")) is True
        assert await queue.enqueue(mention("2.0")) is True
        assert queue.pending_count == 2

    async def test_processing_state(self) -> None:
        """Counts follow an event through the queue."""
        queue = EventQueue()
        await queue.enqueue(mention())

        assert queue.pending_count == 1
        assert queue.processing_count == 0

        event = await queue.dequeue()
        assert queue.pending_count == 0
        assert queue.processing_count == 1

        queue.mark_done(event)
        assert queue.processing_count == 0
