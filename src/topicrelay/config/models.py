"""Pydantic models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field

from topicrelay.domain.entities.thread import DEFAULT_TOPIC_TTL_SECONDS


class SlackConfig(BaseModel):
    """Slack integration configuration."""

    bot_token: str = Field(
        ...,
        description=(
            "Slack bot token used for Web API calls (typically starts with 'xoxb-')."
        ),
    )
    signing_secret: str | None = Field(
        default=None,
        description=(
            "Signing secret used to verify Events API requests. "
            "Verification is skipped when unset."
        ),
    )
    bot_user_id: str | None = Field(
        default=None,
        description=(
            "The bot's own user ID. Used to recognise the bot's messages in "
            "thread history when Slack does not attach a bot_id."
        ),
    )


class AssistantConfig(BaseModel):
    """Remote assistant API configuration."""

    api_key: str = Field(..., description="Bearer token for the assistant API.")
    base_url: str = Field(
        default="https://api-dsc.mintlify.com",
        description="Base URL of the assistant API.",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Total timeout in seconds for a single assistant API request.",
    )


class RelayConfig(BaseModel):
    """Settings for the reply orchestration."""

    processing_reaction: str = "eyes"
    debug_marker: str = "[debug]"
    history_limit: int = Field(default=100, ge=0, le=100)
    topic_ttl_seconds: int = Field(default=DEFAULT_TOPIC_TTL_SECONDS, gt=0)
    docs_base_url: str = "https://docs.firstquadrant.ai/"
    sources_label: str = "Sources: "


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = Field(
        default="sqlite+aiosqlite:///./data/topicrelay.db",
        description=(
            "SQLAlchemy-style database connection URL "
            "(e.g., 'sqlite+aiosqlite:///path/to/db')."
        ),
    )


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "json"


class AppConfig(BaseModel):
    """Application configuration."""

    slack: SlackConfig
    assistant: AssistantConfig
    relay: RelayConfig = Field(default_factory=RelayConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
