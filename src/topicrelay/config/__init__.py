"""Configuration module for topicrelay."""

from topicrelay.config.loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    EnvVarNotFoundError,
    load_config,
)
from topicrelay.config.models import (
    AppConfig,
    AssistantConfig,
    DatabaseConfig,
    LoggingConfig,
    RelayConfig,
    ServerConfig,
    SlackConfig,
)

__all__ = [
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "EnvVarNotFoundError",
    # Functions
    "load_config",
    # Models
    "AppConfig",
    "AssistantConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "RelayConfig",
    "ServerConfig",
    "SlackConfig",
]
