"""ThreadTopic entity for thread-to-topic persistence."""

from datetime import datetime

from sqlalchemy import Index
from sqlmodel import Field, SQLModel


class ThreadTopic(SQLModel, table=True):
    """Mapping from a Slack thread to a remote assistant topic.

    Attributes:
        key: Thread key in format `thread:{channel}:{thread_ts}`.
        topic_id: Opaque topic ID issued by the assistant API.
        expires_at: UTC time after which the mapping reads as absent.
        created_at: Record creation time.
    """

    __tablename__ = "thread_topics"
    __table_args__ = (Index("idx_thread_topics_expires_at", "expires_at"),)

    key: str = Field(primary_key=True)
    topic_id: str
    expires_at: datetime
    created_at: datetime
