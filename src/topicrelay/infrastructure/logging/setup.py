"""Logging setup module using structlog."""

import logging
import re
import sys
from typing import Any

import structlog
from structlog.stdlib import BoundLogger

from topicrelay.config.models import LoggingConfig

# Bearer credentials and Slack tokens (xoxb-, xoxp-, xapp- ...)
SECRET_PATTERN = re.compile(r"(Bearer\s+)[^\s\"']+|\bx(?:ox[a-z]|app)-[A-Za-z0-9-]+")

REDACTED = "[REDACTED]"

EVENT_CONTEXT_KEYS = ("event_id", "channel", "thread_ts")


def _redact(match: re.Match[str]) -> str:
    prefix = match.group(1)
    return f"{prefix}{REDACTED}" if prefix else REDACTED


def mask_secrets(
    logger: Any, method_name: str, event_dict: structlog.typing.EventDict
) -> structlog.typing.EventDict:
    """Mask credentials in string values of a log event."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = SECRET_PATTERN.sub(_redact, value)
    return event_dict


def setup_logging(config: LoggingConfig) -> None:
    """Initialize logging configuration.

    Args:
        config: Logging configuration specifying level and format.
    """
    log_level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    # aiohttp's access log is noisy at INFO and duplicates our own request logs
    logging.getLogger("aiohttp.access").setLevel(max(log_level, logging.WARNING))

    shared_processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        mask_secrets,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if config.format == "json":
        renderer: structlog.typing.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler.setFormatter(formatter)


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name, typically the module name (__name__).

    Returns:
        A bound logger instance that can be used for logging.
    """
    return structlog.stdlib.get_logger(name)


def bind_event_context(
    event_id: str, channel: str | None = None, thread_ts: str | None = None
) -> None:
    """Bind event identifiers to every log line emitted while handling it."""
    values = {"event_id": event_id, "channel": channel, "thread_ts": thread_ts}
    structlog.contextvars.bind_contextvars(
        **{key: value for key, value in values.items() if value is not None}
    )


def clear_event_context() -> None:
    """Drop the values bound with bind_event_context, leaving other context."""
    structlog.contextvars.unbind_contextvars(*EVENT_CONTEXT_KEYS)
