"""ThreadTopicRepository protocol."""

from typing import Protocol

from topicrelay.domain.entities.thread import DEFAULT_TOPIC_TTL_SECONDS, ThreadKey


class ThreadTopicRepository(Protocol):
    """Repository protocol for thread-to-topic mappings.

    Implementations are not required to be strongly consistent: a ``put``
    need not be visible to a concurrent ``get`` from another process, and
    ``get`` followed by ``put`` is not atomic.
    """

    async def get(self, key: ThreadKey) -> str | None:
        """Get the topic ID mapped to a thread.

        Args:
            key: The thread key.

        Returns:
            The topic ID, or None if never stored or expired.
        """
        ...

    async def put(
        self,
        key: ThreadKey,
        topic_id: str,
        ttl_seconds: int = DEFAULT_TOPIC_TTL_SECONDS,
    ) -> None:
        """Store a topic ID for a thread, overwriting any existing mapping.

        Args:
            key: The thread key.
            topic_id: The topic ID to store.
            ttl_seconds: Seconds until the mapping expires.
        """
        ...
