"""Thread identity and history entities."""

from pydantic import BaseModel, ConfigDict

# Seven days, the retention window for thread-to-topic mappings
DEFAULT_TOPIC_TTL_SECONDS = 86400 * 7


class ThreadKey(BaseModel):
    """Identifies a Slack thread by channel and root message timestamp.

    Attributes:
        channel: Slack channel ID.
        thread_ts: Timestamp of the thread's root message.
    """

    model_config = ConfigDict(frozen=True)

    channel: str
    thread_ts: str

    def storage_key(self) -> str:
        """Return the key used in the thread-topic store."""
        return f"thread:{self.channel}:{self.thread_ts}"

    def __str__(self) -> str:
        return self.storage_key()


class ThreadHistoryMessage(BaseModel):
    """A prior message in a thread, as returned by the chat platform."""

    ts: str
    text: str = ""
    user: str | None = None
    is_bot: bool = False
