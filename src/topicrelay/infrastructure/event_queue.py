"""EventQueue implementation with deduplication."""

import asyncio
from collections import OrderedDict

from topicrelay.domain.entities.event import InboundEvent, SlackEvent

# Number of completed identity keys remembered for deduplication
DEFAULT_HISTORY_SIZE = 1000


class EventQueue:
    """In-memory event queue that drops repeated deliveries.

    An event is dropped when another event with the same identity key is
    pending, being processed, or was recently completed. The first delivery
    wins.
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        """Initialize the event queue.

        Args:
            history_size: Number of completed identity keys to remember.
        """
        self._queue: asyncio.Queue[InboundEvent] = asyncio.Queue()
        self._pending: set[str] = set()
        self._processing: set[str] = set()
        # Insertion-ordered so the oldest keys are evicted first
        self._completed: OrderedDict[str, None] = OrderedDict()
        self._history_size = history_size

    @property
    def pending_count(self) -> int:
        """Return the number of pending events."""
        return len(self._pending)

    @property
    def processing_count(self) -> int:
        """Return the number of events being processed."""
        return len(self._processing)

    def is_known(self, event: SlackEvent) -> bool:
        """Return True if an event with the same identity key was seen."""
        key = event.get_identity_key()
        return key in self._pending or key in self._processing or key in self._completed

    async def enqueue(self, event: InboundEvent) -> bool:
        """Add an event to the queue unless it is a duplicate.

        Args:
            event: The event to enqueue.

        Returns:
            True if the event was enqueued, False if it was dropped.
        """
        if self.is_known(event):
            return False

        self._pending.add(event.get_identity_key())
        await self._queue.put(event)
        return True

    async def dequeue(self) -> InboundEvent:
        """Get the next event from the queue and mark it as processing."""
        event = await self._queue.get()
        key = event.get_identity_key()
        self._pending.discard(key)
        self._processing.add(key)
        return event

    def mark_done(self, event: SlackEvent) -> None:
        """Mark an event as done processing.

        Args:
            event: The event that has been processed.
        """
        key = event.get_identity_key()
        self._processing.discard(key)
        self._completed[key] = None
        self._completed.move_to_end(key)
        while len(self._completed) > self._history_size:
            self._completed.popitem(last=False)
