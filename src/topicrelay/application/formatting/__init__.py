"""Formatting of assistant replies for Slack."""

from topicrelay.application.formatting.mrkdwn import (
    absolute_link,
    format_citations,
    markdown_to_mrkdwn,
)

__all__ = ["absolute_link", "format_citations", "markdown_to_mrkdwn"]
