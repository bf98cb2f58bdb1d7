"""HTTP server for receiving Slack events."""

import json
from typing import Any

import structlog
from aiohttp import web
from pydantic import ValidationError
from slack_sdk.signature import SignatureVerifier

from topicrelay.config.models import ServerConfig
from topicrelay.domain.entities.event import (
    EventType,
    InboundEvent,
    inbound_event_adapter,
)
from topicrelay.infrastructure.event_queue import EventQueue

GREETING = "topicrelay is running"


class HTTPServer:
    """HTTP server for Slack Events API callbacks and health checks.

    This server provides endpoints for:
    - POST /slack/events: Receive, verify and enqueue Slack events
    - GET /: Static greeting
    - GET /healthz: Kubernetes liveness probe

    Every accepted callback is answered immediately; processing happens
    from the queue.

    Args:
        config: Server configuration containing host and port.
        event_queue: EventQueue instance for enqueuing received events.
        logger: Structured logger for logging.
        signing_secret: Slack signing secret. Signatures are not checked
            when None.
        bot_user_id: The bot's user ID, if known from configuration.
    """

    def __init__(
        self,
        config: ServerConfig,
        event_queue: EventQueue,
        logger: structlog.BoundLogger,
        signing_secret: str | None = None,
        bot_user_id: str | None = None,
    ) -> None:
        self.config = config
        self._event_queue = event_queue
        self._logger = logger
        self._verifier = SignatureVerifier(signing_secret) if signing_secret else None
        self._bot_user_id = bot_user_id
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    @property
    def is_running(self) -> bool:
        """Return True if the server is running."""
        return self._site is not None

    @property
    def actual_port(self) -> int:
        """Return the actual port the server is listening on.

        This is useful when port 0 is configured to get a random port.

        Raises:
            RuntimeError: If the server is not running.
        """
        if self._site is None:
            raise RuntimeError("Server is not running")
        server = getattr(self._site, "_server", None)
        if server is None:
            raise RuntimeError("Server is not running")
        sockets = getattr(server, "sockets", None)
        if sockets:
            return sockets[0].getsockname()[1]
        raise RuntimeError("No sockets available")

    def create_app(self) -> web.Application:
        """Create and return the aiohttp Application.

        This method is exposed for testing purposes.

        Returns:
            Configured aiohttp Application.
        """
        app = web.Application()
        app.router.add_get("/", self._handle_root)
        app.router.add_get("/healthz", self._handle_health_check)
        app.router.add_post("/slack/events", self._handle_slack_events)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._app = self.create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()
        self._logger.info(
            "HTTP server started",
            host=self.config.host,
            port=self.actual_port,
        )

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            self._app = None
            self._logger.info("HTTP server stopped")

    async def _handle_root(self, request: web.Request) -> web.Response:
        return web.Response(text=GREETING)

    async def _handle_health_check(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def _handle_slack_events(self, request: web.Request) -> web.Response:
        """Handle POST /slack/events requests.

        Args:
            request: The incoming request.

        Returns:
            The URL verification challenge, an empty 200 acknowledgement, or
            an error response for unsigned or malformed requests.
        """
        raw_body = await request.text()

        if self._verifier is not None and not self._is_signed(request, raw_body):
            self._logger.warning("Rejected request with invalid signature")
            return web.json_response({"error": "Invalid signature"}, status=401)

        try:
            body = json.loads(raw_body)
        except json.JSONDecodeError:
            return web.json_response({"error": "Invalid JSON"}, status=400)
        if not isinstance(body, dict):
            return web.json_response({"error": "Invalid JSON"}, status=400)

        payload_type = body.get("type")
        if payload_type == "url_verification":
            return web.json_response({"challenge": body.get("challenge", "")})

        if payload_type != "event_callback":
            self._logger.debug("Ignoring payload", payload_type=payload_type)
            return web.Response(status=200)

        # Slack retries when we are slow to acknowledge; the first delivery
        # is already queued or done.
        retry_num = request.headers.get("X-Slack-Retry-Num")
        if retry_num is not None:
            self._logger.info(
                "Ignoring retried delivery",
                retry_num=retry_num,
                retry_reason=request.headers.get("X-Slack-Retry-Reason"),
            )
            return web.Response(status=200)

        event = self._build_event(body)
        if event is None:
            return web.Response(status=200)

        if await self._event_queue.enqueue(event):
            self._logger.info(
                "Event received",
                event_id=event.id,
                event_type=event.type.value,
                channel=event.channel,
                ts=event.ts,
            )
        else:
            self._logger.info(
                "Duplicate event dropped",
                event_type=event.type.value,
                channel=event.channel,
                ts=event.ts,
            )
        return web.Response(status=200)

    def _is_signed(self, request: web.Request, raw_body: str) -> bool:
        assert self._verifier is not None
        timestamp = request.headers.get("X-Slack-Request-Timestamp", "")
        signature = request.headers.get("X-Slack-Signature", "")
        # SignatureVerifier parses the timestamp with int()
        if not signature or not timestamp.isdecimal():
            return False
        return self._verifier.is_valid(
            body=raw_body, timestamp=timestamp, signature=signature
        )

    def _build_event(self, body: dict[str, Any]) -> InboundEvent | None:
        """Turn an event_callback payload into an inbound event, if relevant."""
        raw_event = body.get("event")
        if not isinstance(raw_event, dict):
            return None

        event_type = raw_event.get("type")
        if event_type == EventType.THREAD_MESSAGE.value:
            if not self._is_relevant_thread_message(raw_event, body):
                return None
        elif event_type != EventType.MENTION.value:
            self._logger.debug("Ignoring event type", event_type=event_type)
            return None

        try:
            return inbound_event_adapter.validate_python(raw_event)
        except ValidationError as e:
            self._logger.warning(
                "Malformed event", event_type=event_type, error=str(e)
            )
            return None

    def _is_relevant_thread_message(
        self, raw_event: dict[str, Any], body: dict[str, Any]
    ) -> bool:
        # Edits, deletions and bot posts arrive with a subtype
        if raw_event.get("subtype") is not None:
            return False
        thread_ts = raw_event.get("thread_ts")
        if not thread_ts or thread_ts == raw_event.get("ts"):
            return False

        # Messages addressing the bot are also delivered as app_mention
        bot_user_id = self._bot_user_id or _authorized_user_id(body)
        if bot_user_id and f"<@{bot_user_id}" in raw_event.get("text", ""):
            return False
        return True


def _authorized_user_id(body: dict[str, Any]) -> str | None:
    authorizations = body.get("authorizations") or []
    if authorizations and isinstance(authorizations[0], dict):
        return authorizations[0].get("user_id")
    return None
