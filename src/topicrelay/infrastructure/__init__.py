"""Infrastructure layer."""

from topicrelay.infrastructure.assistant import AssistantClient, HttpFailure
from topicrelay.infrastructure.event_queue import EventQueue
from topicrelay.infrastructure.persistence import Database, SqliteThreadTopicRepository
from topicrelay.infrastructure.slack import SlackPlatform

__all__ = [
    "AssistantClient",
    "Database",
    "EventQueue",
    "HttpFailure",
    "SlackPlatform",
    "SqliteThreadTopicRepository",
]
