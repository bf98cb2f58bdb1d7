"""Builds the message text sent to the assistant."""

import re
from collections.abc import Sequence

from jinja2 import Template

from topicrelay.domain.entities.thread import ThreadHistoryMessage

# Slack user mentions, e.g. <@U0123ABCD> or <@U0123ABCD|name>
MENTION_PATTERN = re.compile(r"<@[A-Z0-9]+(?:\|[^>]*)?>")

HISTORY_QUERY_TEMPLATE = Template(
    "Previous conversation in this thread:\n"
    "{% for item in history %}"
    "{{ 'Assistant' if item.is_bot else 'User' }}: {{ item.text }}\n"
    "{% endfor %}"
    "\nCurrent message: {{ message }}"
)


def clean_message_text(text: str, debug_marker: str | None = None) -> str:
    """Strip mention tokens and the debug marker, then trim whitespace."""
    text = MENTION_PATTERN.sub("", text)
    if debug_marker:
        text = text.replace(debug_marker, "")
    return text.strip()


def build_query(
    message: str,
    history: Sequence[ThreadHistoryMessage],
    exclude_ts: str | None = None,
) -> str:
    """Prefix a message with the prior turns of its thread.

    Args:
        message: The cleaned current message.
        history: Thread messages, oldest first.
        exclude_ts: Timestamp of the triggering message, left out of the history.

    Returns:
        The message unchanged when there is no usable history, otherwise the
        message wrapped in a history block.
    """
    prior = [
        item.model_copy(update={"text": clean_message_text(item.text)})
        for item in history
        if item.ts != exclude_ts
    ]
    prior = [item for item in prior if item.text]
    if not prior:
        return message
    return HISTORY_QUERY_TEMPLATE.render(history=prior, message=message)
