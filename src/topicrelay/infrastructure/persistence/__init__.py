"""Persistence infrastructure."""

from topicrelay.infrastructure.persistence.database import Database
from topicrelay.infrastructure.persistence.thread_topic_repository import (
    SqliteThreadTopicRepository,
)

__all__ = ["Database", "SqliteThreadTopicRepository"]
