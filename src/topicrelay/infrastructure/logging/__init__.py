"""Logging infrastructure module."""

from topicrelay.infrastructure.logging.setup import (
    bind_event_context,
    clear_event_context,
    get_logger,
    setup_logging,
)

__all__ = ["bind_event_context", "clear_event_context", "get_logger", "setup_logging"]
