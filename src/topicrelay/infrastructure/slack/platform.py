"""Slack Web API implementation of ChatPlatform."""

from typing import Any

from slack_sdk.web.async_client import AsyncWebClient
from structlog.stdlib import BoundLogger

from topicrelay.domain.entities.thread import ThreadHistoryMessage


class SlackPlatform:
    """ChatPlatform backed by ``slack_sdk``'s AsyncWebClient.

    Args:
        client: Slack Web API client authenticated with the bot token.
        logger: Structured logger for logging.
        bot_user_id: The bot's own user ID, used to recognise its messages
            in thread history alongside ``bot_id``.
    """

    def __init__(
        self,
        client: AsyncWebClient,
        logger: BoundLogger,
        bot_user_id: str | None = None,
    ) -> None:
        self._client = client
        self._logger = logger
        self._bot_user_id = bot_user_id

    async def add_reaction(self, channel: str, timestamp: str, name: str) -> None:
        """Add a reaction to a message, logging any failure."""
        try:
            await self._client.reactions_add(
                channel=channel, timestamp=timestamp, name=name
            )
        except Exception as e:
            self._logger.warning(
                "Failed to add reaction",
                channel=channel,
                timestamp=timestamp,
                reaction=name,
                error=str(e),
            )

    async def remove_reaction(self, channel: str, timestamp: str, name: str) -> None:
        """Remove a reaction from a message, logging any failure."""
        try:
            await self._client.reactions_remove(
                channel=channel, timestamp=timestamp, name=name
            )
        except Exception as e:
            self._logger.warning(
                "Failed to remove reaction",
                channel=channel,
                timestamp=timestamp,
                reaction=name,
                error=str(e),
            )

    async def reply(self, channel: str, thread_ts: str, text: str) -> None:
        """Post a message into a thread."""
        await self._client.chat_postMessage(
            channel=channel, thread_ts=thread_ts, text=text
        )

    async def list_replies(
        self, channel: str, thread_ts: str, limit: int
    ) -> list[ThreadHistoryMessage]:
        """Get messages of a thread, oldest first, including the root."""
        response = await self._client.conversations_replies(
            channel=channel, ts=thread_ts, limit=limit
        )
        messages: list[dict[str, Any]] = response.get("messages") or []
        return [self._to_history_message(message) for message in messages[:limit]]

    def _to_history_message(self, message: dict[str, Any]) -> ThreadHistoryMessage:
        user = message.get("user")
        is_bot = "bot_id" in message or (
            self._bot_user_id is not None and user == self._bot_user_id
        )
        return ThreadHistoryMessage(
            ts=message["ts"],
            text=message.get("text", ""),
            user=user,
            is_bot=is_bot,
        )
