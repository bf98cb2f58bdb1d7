"""HTTP client for the remote assistant API."""

from dataclasses import dataclass
from types import TracebackType

import aiohttp
from structlog.stdlib import BoundLogger

from topicrelay.config.models import AssistantConfig

TOPIC_PATH = "/v1/chat/topic"
MESSAGE_PATH = "/v1/chat/message"


@dataclass(frozen=True)
class HttpFailure:
    """A non-2xx response from the assistant API."""

    status: int
    body: str

    def __str__(self) -> str:
        return f"({self.status}): {self.body}"


class AssistantClient:
    """Client for creating topics and exchanging messages with the assistant.

    Non-2xx responses are returned as HttpFailure values. Transport errors
    (connection failures, timeouts) are raised as ``aiohttp.ClientError`` or
    ``TimeoutError``.

    Args:
        config: Assistant API configuration.
        logger: Structured logger for logging.
        session: Optional session to use. A session created by the client is
            closed by close(); a passed-in session is left open.
    """

    def __init__(
        self,
        config: AssistantConfig,
        logger: BoundLogger,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._logger = logger
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "AssistantClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.timeout),
            )
            self._owns_session = True
        return self._session

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }

    def _url(self, path: str) -> str:
        return self._config.base_url.rstrip("/") + path

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    async def create_topic(self) -> str | HttpFailure:
        """Create a new conversation topic.

        Returns:
            The new topic ID, or HttpFailure for a non-2xx response.
        """
        session = self._get_session()
        async with session.post(self._url(TOPIC_PATH), headers=self._headers()) as resp:
            if not resp.ok:
                failure = HttpFailure(status=resp.status, body=await resp.text())
                self._logger.error(
                    "Failed to create topic", status=failure.status, body=failure.body
                )
                return failure

            data = await resp.json(content_type=None)
            topic_id: str = data["topicId"]
            self._logger.info("Topic created", topic_id=topic_id)
            return topic_id

    async def send_message(self, topic_id: str, message: str) -> str | HttpFailure:
        """Send a message to a topic and return the raw reply body.

        Args:
            topic_id: The topic to post into.
            message: The message text.

        Returns:
            The raw response text (``display text || sources json``), or
            HttpFailure for a non-2xx response.
        """
        session = self._get_session()
        async with session.post(
            self._url(MESSAGE_PATH),
            headers=self._headers(),
            json={"topicId": topic_id, "message": message},
        ) as resp:
            body = await resp.text()
            if not resp.ok:
                self._logger.error(
                    "Failed to send message",
                    topic_id=topic_id,
                    status=resp.status,
                    body=body,
                )
                return HttpFailure(status=resp.status, body=body)

            self._logger.info(
                "Assistant replied", topic_id=topic_id, response_length=len(body)
            )
            return body
