"""Tests for config loader."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from topicrelay.config.loader import (
    ConfigFileNotFoundError,
    ConfigParseError,
    EnvVarNotFoundError,
    expand_env_vars,
    load_config,
)
from topicrelay.config.models import AppConfig

MINIMAL_CONFIG = """
slack:
  bot_token: xoxb-test
assistant:
  api_key: assistant-key
"""


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_valid_config(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            MINIMAL_CONFIG
            + """
server:
  port: 9000
relay:
  debug_marker: "!debug"
"""
        )

        config = load_config(config_file)

        assert isinstance(config, AppConfig)
        assert config.slack.bot_token == "xoxb-test"
        assert config.assistant.api_key == "assistant-key"
        assert config.server.port == 9000
        assert config.server.host == "0.0.0.0"
        assert config.relay.debug_marker == "!debug"
        assert config.relay.processing_reaction == "eyes"

    def test_file_not_found(self) -> None:
        with pytest.raises(ConfigFileNotFoundError) as exc_info:
            load_config(Path("/nonexistent/path/config.yaml"))

        assert "not found" in str(exc_info.value).lower()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("invalid: yaml: format:")

        with pytest.raises(ConfigParseError):
            load_config(config_file)

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ConfigParseError, match="mapping"):
            load_config(config_file)

    def test_empty_file_fails_validation(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        with pytest.raises(ValidationError):
            load_config(config_file)

    def test_missing_assistant_section(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("slack:\n  bot_token: xoxb-test\n")

        with pytest.raises(ValidationError):
            load_config(config_file)

    def test_load_config_with_env_vars(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("""
slack:
  bot_token: ${SLACK_BOT_USER_OAUTH_TOKEN}
  signing_secret: ${SLACK_SIGNING_SECRET}
assistant:
  api_key: ${MINTLIFY_PUBLIC_ASSISTANT_API_KEY}
""")

        with patch.dict(
            os.environ,
            {
                "SLACK_BOT_USER_OAUTH_TOKEN": "xoxb-env",
                "SLACK_SIGNING_SECRET": "signing",
                "MINTLIFY_PUBLIC_ASSISTANT_API_KEY": "mint",
            },
            clear=False,
        ):
            config = load_config(config_file)

        assert config.slack.bot_token == "xoxb-env"
        assert config.slack.signing_secret == "signing"
        assert config.assistant.api_key == "mint"

    def test_load_config_undefined_env_var(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("""
slack:
  bot_token: ${UNDEFINED_TOKEN}
assistant:
  api_key: key
""")

        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvVarNotFoundError, match="UNDEFINED_TOKEN"):
                load_config(config_file)

    def test_example_config_loads(self) -> None:
        """The shipped example config is valid once its secrets are set."""
        example = Path(__file__).parents[3] / "config.example.yaml"

        with patch.dict(
            os.environ,
            {
                "SLACK_BOT_USER_OAUTH_TOKEN": "xoxb-env",
                "SLACK_SIGNING_SECRET": "signing",
                "MINTLIFY_PUBLIC_ASSISTANT_API_KEY": "mint",
            },
            clear=True,
        ):
            config = load_config(example)

        assert config.database.url == "sqlite+aiosqlite:///./data/topicrelay.db"
        assert config.relay.history_limit == 100


class TestExpandEnvVars:
    """Tests for expand_env_vars function."""

    def test_expand_string_env_var(self) -> None:
        with patch.dict(os.environ, {"API_KEY": "test-key"}, clear=False):
            assert expand_env_vars("${API_KEY}") == "test-key"

    def test_expand_nested_dict(self) -> None:
        data = {"assistant": {"api_key": "${API_KEY}", "timeout": 30}}

        with patch.dict(os.environ, {"API_KEY": "test-key"}, clear=False):
            result = expand_env_vars(data)

        assert result == {"assistant": {"api_key": "test-key", "timeout": 30}}

    def test_expand_in_list(self) -> None:
        with patch.dict(os.environ, {"VAR1": "value1", "VAR2": "value2"}, clear=False):
            result = expand_env_vars(["${VAR1}", "static", "${VAR2}"])

        assert result == ["value1", "static", "value2"]

    def test_no_expansion_for_partial_match(self) -> None:
        with patch.dict(os.environ, {"VAR": "value"}, clear=False):
            assert expand_env_vars("prefix${VAR}suffix") == "prefix${VAR}suffix"

    def test_undefined_env_var_raises_error(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvVarNotFoundError) as exc_info:
                expand_env_vars("${UNDEFINED_VAR}")

        assert "UNDEFINED_VAR" in str(exc_info.value)

    def test_default_used_when_unset(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            assert expand_env_vars("${DB_URL:-sqlite+aiosqlite:///x.db}") == (
                "sqlite+aiosqlite:///x.db"
            )

    def test_set_value_wins_over_default(self) -> None:
        with patch.dict(os.environ, {"DB_URL": "from-env"}, clear=True):
            assert expand_env_vars("${DB_URL:-fallback}") == "from-env"

    def test_empty_default(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            assert expand_env_vars("${OPTIONAL:-}") == ""

    def test_non_string_values_unchanged(self) -> None:
        assert expand_env_vars(123) == 123
        assert expand_env_vars(True) is True
        assert expand_env_vars(None) is None
