"""ChatPlatform protocol."""

from typing import Protocol

from topicrelay.domain.entities.thread import ThreadHistoryMessage


class ChatPlatform(Protocol):
    """Capabilities the relay needs from the chat platform.

    Reaction operations are best-effort: implementations log failures and
    never raise. ``reply`` and ``list_replies`` raise on failure.
    """

    async def add_reaction(self, channel: str, timestamp: str, name: str) -> None:
        """Add a reaction to a message, logging any failure."""
        ...

    async def remove_reaction(self, channel: str, timestamp: str, name: str) -> None:
        """Remove a reaction from a message, logging any failure."""
        ...

    async def reply(self, channel: str, thread_ts: str, text: str) -> None:
        """Post a message into a thread.

        Args:
            channel: The channel ID.
            thread_ts: Timestamp of the thread's root message.
            text: Message text in the platform's markup.
        """
        ...

    async def list_replies(
        self, channel: str, thread_ts: str, limit: int
    ) -> list[ThreadHistoryMessage]:
        """Get messages of a thread, oldest first, including the root.

        Args:
            channel: The channel ID.
            thread_ts: Timestamp of the thread's root message.
            limit: Maximum number of messages to return.

        Returns:
            List of messages.
        """
        ...
