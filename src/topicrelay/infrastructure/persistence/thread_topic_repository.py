"""SQLite implementation of ThreadTopicRepository."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete
from sqlmodel import select

from topicrelay.domain.entities.thread import DEFAULT_TOPIC_TTL_SECONDS, ThreadKey
from topicrelay.domain.entities.thread_topic import ThreadTopic
from topicrelay.infrastructure.persistence.database import Database


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SqliteThreadTopicRepository:
    """SQLite implementation of ThreadTopicRepository.

    Expiry is evaluated in SQL against ``expires_at``; expired rows stay in
    the table until ``purge_expired`` removes them.
    """

    def __init__(
        self, database: Database, clock: Callable[[], datetime] = utc_now
    ) -> None:
        """Initialize the repository.

        Args:
            database: Database instance for session management.
            clock: Returns the current UTC time.
        """
        self._database = database
        self._clock = clock

    async def get(self, key: ThreadKey) -> str | None:
        """Get the topic ID mapped to a thread.

        Args:
            key: The thread key.

        Returns:
            The topic ID, or None if never stored or expired.
        """
        async with self._database.get_session() as session:
            statement = (
                select(ThreadTopic.topic_id)
                .where(ThreadTopic.key == key.storage_key())
                .where(ThreadTopic.expires_at > self._clock())
            )
            result = await session.execute(statement)
            return result.scalar_one_or_none()

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
        now = self._clock()
        async with self._database.get_session() as session:
            await session.merge(
                ThreadTopic(
                    key=key.storage_key(),
                    topic_id=topic_id,
                    expires_at=now + timedelta(seconds=ttl_seconds),
                    created_at=now,
                )
            )

    async def purge_expired(self) -> int:
        """Delete expired mappings.

        Returns:
            Number of rows deleted.
        """
        async with self._database.get_session() as session:
            result: Any = await session.execute(
                delete(ThreadTopic).where(
                    ThreadTopic.expires_at <= self._clock()  # type: ignore[arg-type]
                )
            )
            return result.rowcount
