"""Domain entities."""

from topicrelay.domain.entities.assistant_reply import AssistantReply, Source
from topicrelay.domain.entities.event import (
    EventType,
    InboundEvent,
    MentionEvent,
    SlackEvent,
    ThreadMessageEvent,
)
from topicrelay.domain.entities.thread import ThreadHistoryMessage, ThreadKey
from topicrelay.domain.entities.thread_topic import ThreadTopic

__all__ = [
    "AssistantReply",
    "EventType",
    "InboundEvent",
    "MentionEvent",
    "SlackEvent",
    "Source",
    "ThreadHistoryMessage",
    "ThreadKey",
    "ThreadMessageEvent",
    "ThreadTopic",
]
