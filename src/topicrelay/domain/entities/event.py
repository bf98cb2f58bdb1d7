"""Inbound Slack events handled by the relay."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal

import ulid
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from topicrelay.domain.entities.thread import ThreadKey

BOT_MESSAGE_SUBTYPE = "bot_message"


class EventType(str, Enum):
    """Event type enumeration, named after the Slack event types."""

    MENTION = "app_mention"
    THREAD_MESSAGE = "message"


class SlackEvent(BaseModel):
    """Base class for inbound Slack events."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: str(ulid.new()))
    type: EventType
    text: str = ""
    channel: str
    ts: str
    thread_ts: str | None = None
    user: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def thread_root_ts(self) -> str:
        """Timestamp of the thread's root message.

        A message outside any thread starts its own thread.
        """
        return self.thread_ts or self.ts

    @property
    def thread_key(self) -> ThreadKey:
        """Return the key identifying this event's thread."""
        return ThreadKey(channel=self.channel, thread_ts=self.thread_root_ts)

    @property
    def in_thread(self) -> bool:
        """Return True if the event was posted as a reply inside a thread."""
        return self.thread_ts is not None and self.thread_ts != self.ts

    def get_identity_key(self) -> str:
        """Return the identity key for deduplication.

        Slack delivers a thread mention both as ``app_mention`` and as
        ``message``; both share this key.
        """
        return f"{self.channel}:{self.ts}"


class MentionEvent(SlackEvent):
    """The bot was addressed explicitly."""

    type: Literal[EventType.MENTION] = EventType.MENTION


class ThreadMessageEvent(SlackEvent):
    """A plain message posted inside a thread."""

    type: Literal[EventType.THREAD_MESSAGE] = EventType.THREAD_MESSAGE
    thread_ts: str
    subtype: str | None = None
    bot_id: str | None = None

    @property
    def is_bot_echo(self) -> bool:
        """Return True if the message was posted by a bot, including this one."""
        return self.subtype == BOT_MESSAGE_SUBTYPE or self.bot_id is not None


InboundEvent = Annotated[
    MentionEvent | ThreadMessageEvent, Field(discriminator="type")
]

inbound_event_adapter: TypeAdapter[MentionEvent | ThreadMessageEvent] = TypeAdapter(
    InboundEvent
)
