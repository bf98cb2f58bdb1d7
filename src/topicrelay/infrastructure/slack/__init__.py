"""Slack infrastructure."""

from topicrelay.infrastructure.slack.platform import SlackPlatform

__all__ = ["SlackPlatform"]
