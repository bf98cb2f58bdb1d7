"""Message orchestration: from a Slack event to a threaded assistant reply."""

from typing import assert_never

from pydantic import ValidationError
from structlog.stdlib import BoundLogger

from topicrelay.application.formatting.mrkdwn import (
    format_citations,
    markdown_to_mrkdwn,
)
from topicrelay.application.services.query_builder import (
    build_query,
    clean_message_text,
)
from topicrelay.config.models import RelayConfig
from topicrelay.domain.entities.assistant_reply import AssistantReply
from topicrelay.domain.entities.event import (
    InboundEvent,
    MentionEvent,
    ThreadMessageEvent,
)
from topicrelay.domain.entities.thread import ThreadKey
from topicrelay.domain.ports.chat_platform import ChatPlatform
from topicrelay.domain.repositories.thread_topic_repository import (
    ThreadTopicRepository,
)
from topicrelay.infrastructure.assistant.client import AssistantClient, HttpFailure
from topicrelay.infrastructure.logging import bind_event_context, clear_event_context

DEBUG_SEPARATOR = "\n\n---\n\n"


class DebugTrace:
    """Trace lines collected during one run when debug mode is on."""

    def __init__(self, enabled: bool) -> None:
        self.enabled = enabled
        self.lines: list[str] = []

    def add(self, line: str) -> None:
        if self.enabled:
            self.lines.append(line)

    def wrap(self, text: str) -> str:
        """Prepend the trace block to a reply."""
        if not self.enabled:
            return text
        return "\n".join(self.lines) + DEBUG_SEPARATOR + text


class _TerminalReply(Exception):
    """Ends a run early with a user-visible message."""

    def __init__(self, text: str) -> None:
        super().__init__(text)
        self.text = text


class MessageOrchestrator:
    """Relays Slack events to the assistant and posts replies into threads.

    Each call to process() handles one event end to end: it resolves or
    creates the thread's topic, sends the cleaned message, converts the
    reply to mrkdwn, appends citations and posts it. A processing reaction
    marks the source message while the run is in flight.

    Args:
        assistant: Client for the remote assistant API.
        topics: Thread-to-topic store.
        platform: Chat platform capabilities.
        config: Relay settings.
        logger: Structured logger for logging.
    """

    def __init__(
        self,
        assistant: AssistantClient,
        topics: ThreadTopicRepository,
        platform: ChatPlatform,
        config: RelayConfig,
        logger: BoundLogger,
    ) -> None:
        self._assistant = assistant
        self._topics = topics
        self._platform = platform
        self._config = config
        self._logger = logger

    async def process(self, event: InboundEvent) -> str | None:
        """Handle one inbound event.

        Never raises: unexpected errors are reported into the thread as
        ``Error: <message>``.

        Args:
            event: The event to handle.

        Returns:
            The text posted into the thread, or None if the event was dropped.
        """
        key = event.thread_key
        bind_event_context(
            event_id=event.id, channel=key.channel, thread_ts=key.thread_ts
        )
        try:
            return await self._process(event, key)
        finally:
            clear_event_context()

    async def _process(self, event: InboundEvent, key: ThreadKey) -> str | None:
        self._logger.info("Processing event", event_type=event.type.value)
        acknowledged = False
        try:
            topic_id: str | None = None
            if isinstance(event, ThreadMessageEvent):
                if event.is_bot_echo:
                    self._logger.debug("Ignoring bot message")
                    return None
                topic_id = await self._topics.get(key)
                if topic_id is None:
                    self._logger.debug("No topic for thread, ignoring message")
                    return None
            elif isinstance(event, MentionEvent):
                pass
            else:
                assert_never(event)

            await self._acknowledge(event)
            acknowledged = True

            text = await self._relay(event, key, topic_id)
            await self._platform.reply(key.channel, key.thread_ts, text)
        except _TerminalReply as terminal:
            await self._unacknowledge(event)
            return await self._reply_best_effort(key, terminal.text)
        except Exception as e:
            self._logger.error("Error processing event", error=str(e), exc_info=True)
            if acknowledged:
                await self._unacknowledge(event)
            return await self._reply_best_effort(key, f"Error: {e}")

        await self._unacknowledge(event)
        self._logger.info("Reply posted", reply_length=len(text))
        return text

    async def _relay(
        self, event: InboundEvent, key: ThreadKey, topic_id: str | None
    ) -> str:
        marker = self._config.debug_marker
        trace = DebugTrace(bool(marker) and marker in event.text)
        trace.add(f"Thread: {key}")

        if topic_id is None:
            topic_id = await self._resolve_topic(key, trace)
        else:
            trace.add(f"Existing topic: {topic_id}")

        message = clean_message_text(event.text, self._config.debug_marker)
        query = await self._with_history(event, key, message, trace)
        trace.add(f"Message: {message}")

        result = await self._assistant.send_message(topic_id, query)
        if isinstance(result, HttpFailure):
            raise _TerminalReply(f"Failed to process message {result}")

        reply = AssistantReply.from_payload(result)
        trace.add(f"Response length: {len(result)}")

        text = markdown_to_mrkdwn(reply.display_text)
        footer = self._citation_footer(reply, trace)
        if footer:
            text += f"\n\n{self._config.sources_label}{footer}"

        return trace.wrap(text)

    async def _resolve_topic(self, key: ThreadKey, trace: DebugTrace) -> str:
        existing = await self._topics.get(key)
        if existing is not None:
            trace.add(f"Existing topic: {existing}")
            return existing

        self._logger.info("Creating new topic for thread", thread=str(key))
        result = await self._assistant.create_topic()
        if isinstance(result, HttpFailure):
            raise _TerminalReply(f"Failed to create conversation {result}")

        await self._topics.put(key, result, ttl_seconds=self._config.topic_ttl_seconds)
        trace.add(f"Created topic: {result}")
        return result

    async def _with_history(
        self, event: InboundEvent, key: ThreadKey, message: str, trace: DebugTrace
    ) -> str:
        if not event.in_thread or self._config.history_limit == 0:
            return message

        try:
            history = await self._platform.list_replies(
                key.channel, key.thread_ts, self._config.history_limit
            )
        except Exception as e:
            self._logger.warning("Failed to fetch thread history", error=str(e))
            trace.add("History: unavailable")
            return message

        trace.add(f"History messages: {len(history)}")
        return build_query(message, history, exclude_ts=event.ts)

    def _citation_footer(self, reply: AssistantReply, trace: DebugTrace) -> str:
        try:
            sources = reply.parse_sources()
        except ValidationError as e:
            self._logger.warning("Failed to parse sources", error=str(e))
            trace.add("Sources: unparseable")
            return ""

        trace.add(f"Sources: {len(sources)}")
        return format_citations(sources, self._config.docs_base_url)

    async def _acknowledge(self, event: InboundEvent) -> None:
        await self._platform.add_reaction(
            event.channel, event.ts, self._config.processing_reaction
        )

    async def _unacknowledge(self, event: InboundEvent) -> None:
        await self._platform.remove_reaction(
            event.channel, event.ts, self._config.processing_reaction
        )

    async def _reply_best_effort(self, key: ThreadKey, text: str) -> str:
        try:
            await self._platform.reply(key.channel, key.thread_ts, text)
        except Exception as e:
            self._logger.error("Failed to post error reply", error=str(e))
        return text
