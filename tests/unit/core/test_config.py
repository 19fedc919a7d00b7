"""
Unit tests for configuration loading.

Tests YAML schema validation and the project's shipped settings files.
"""

import pytest
from pydantic import ValidationError

from botplay.core.config import Settings, find_project_root, get_app_config, load_yaml_config
from botplay.core.config_schema import TelegramSchema


class TestProjectRoot:
    """Tests for project root discovery."""

    def test_finds_marker_from_subdirectory(self, tmp_path, monkeypatch):
        """Test that the marker is found by walking up from cwd."""
        (tmp_path / ".project_root").touch()
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert find_project_root() == tmp_path

    def test_missing_marker_raises(self, tmp_path, monkeypatch):
        """Test that a tree without the marker fails clearly."""
        monkeypatch.chdir(tmp_path)

        with pytest.raises(RuntimeError, match="Project root not found"):
            find_project_root()


class TestShippedConfig:
    """Tests for the YAML files in config/settings/."""

    def test_all_files_validate(self):
        """Test that the shipped YAML passes its schemas."""
        config = get_app_config()

        assert config.application.name == "botplay"
        assert config.logging.level
        assert config.telegram.connection_method in ("polling", "webhook")
        assert "{token}" in config.telegram.webhook.route_template

    def test_missing_file_raises(self):
        """Test that an unknown settings file is reported."""
        with pytest.raises(FileNotFoundError):
            load_yaml_config("does_not_exist.yaml")


class TestTelegramSchema:
    """Tests for TelegramSchema validation."""

    @pytest.fixture
    def raw(self):
        return {
            "connection_method": "polling",
            "drop_pending_updates": False,
            "error_cooldown_seconds": 2,
            "polling": {"interval_seconds": 5, "timeout_seconds": 10},
            "webhook": {"host": None, "route_template": "bot/{token}", "refresh_minutes": 60},
        }

    def test_valid(self, raw):
        """Test that a complete file validates."""
        assert TelegramSchema(**raw).polling.interval_seconds == 5

    def test_unknown_key_rejected(self, raw):
        """Test that typos in YAML keys fail at load time."""
        raw["polling"]["intervall"] = 3

        with pytest.raises(ValidationError):
            TelegramSchema(**raw)

    def test_unknown_connection_method_rejected(self, raw):
        """Test that only polling and webhook are accepted."""
        raw["connection_method"] = "push"

        with pytest.raises(ValidationError):
            TelegramSchema(**raw)

    def test_non_positive_refresh_rejected(self, raw):
        """Test that the refresh interval must be positive."""
        raw["webhook"]["refresh_minutes"] = 0

        with pytest.raises(ValidationError):
            TelegramSchema(**raw)


class TestSettings:
    """Tests for secrets loading."""

    def test_reads_environment(self, monkeypatch):
        """Test that secrets come from environment variables."""
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:ENV")
        monkeypatch.setenv("TELEGRAM_WEBHOOK_SECRET", "env-secret")

        settings = Settings(_env_file=None)

        assert settings.telegram_bot_token == "123:ENV"
        assert settings.telegram_webhook_secret == "env-secret"

    def test_defaults_are_empty(self, monkeypatch):
        """Test that missing secrets default to empty."""
        monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
        monkeypatch.delenv("TELEGRAM_WEBHOOK_SECRET", raising=False)

        settings = Settings(_env_file=None)

        assert settings.telegram_bot_token == ""
        assert settings.telegram_webhook_secret is None
