"""Remote assistant API client."""

from topicrelay.infrastructure.assistant.client import AssistantClient, HttpFailure

__all__ = ["AssistantClient", "HttpFailure"]
