"""
Unit tests for bot options.

Tests validation, derived URLs and assembly from configuration.
"""

import pytest
from pydantic import ValidationError

from botplay.core.config import Settings
from botplay.core.config_schema import TelegramSchema
from botplay.core.exceptions import ConfigurationError
from botplay.telegram.options import BotOptions, ConnectionMethod, build_bot_options


def _telegram_schema(**overrides) -> TelegramSchema:
    values = {
        "connection_method": "webhook",
        "drop_pending_updates": True,
        "error_cooldown_seconds": 2,
        "polling": {"interval_seconds": 5, "timeout_seconds": 10},
        "webhook": {
            "host": "https://bot.example.com/",
            "route_template": "/api/{token}/",
            "refresh_minutes": 30,
        },
    }
    values.update(overrides)
    return TelegramSchema(**values)


class TestBotOptions:
    """Tests for BotOptions validation and derived values."""

    def test_defaults(self):
        """Test that only the token is required for polling mode."""
        options = BotOptions(token="abc")

        assert options.connection_method is ConnectionMethod.POLLING
        assert options.route_template == "bot/{token}"
        assert options.polling_interval == 5.0
        assert options.webhook_refresh_seconds == 3600
        assert options.is_webhook is False

    @pytest.mark.parametrize("token", ["", "   "])
    def test_blank_token_is_rejected(self, token):
        """Test that an empty or whitespace token fails validation."""
        with pytest.raises(ValidationError):
            BotOptions(token=token)

    def test_route_template_requires_token_placeholder(self):
        """Test that the route must embed the token."""
        with pytest.raises(ValidationError, match="token"):
            BotOptions(token="abc", route_template="bot/hook")

    def test_webhook_requires_host(self):
        """Test that webhook mode without a host fails validation."""
        with pytest.raises(ValidationError, match="host"):
            BotOptions(token="abc", connection_method=ConnectionMethod.WEBHOOK)

    def test_blank_secret_means_no_secret(self):
        """Test that an empty secret is treated as unset."""
        assert BotOptions(token="abc", secret="  ").secret is None

    @pytest.mark.parametrize("field", ["polling_interval", "webhook_refresh_minutes"])
    def test_intervals_must_be_positive(self, field):
        """Test that zero intervals are rejected."""
        with pytest.raises(ValidationError):
            BotOptions(token="abc", **{field: 0})

    def test_options_are_immutable(self):
        """Test that options can not be changed after validation."""
        options = BotOptions(token="abc")

        with pytest.raises(ValidationError):
            options.token = "other"

    def test_webhook_url_joins_host_and_route(self):
        """Test that slashes between host and route are normalized."""
        options = BotOptions(
            token="123:ABC",
            host="https://bot.example.com/",
            connection_method=ConnectionMethod.WEBHOOK,
            route_template="/api/bot/{token}/",
        )

        assert options.webhook_url == "https://bot.example.com/api/bot/123:ABC"

    def test_route_path_has_token_parameter(self):
        """Test that the FastAPI route uses a bot_token path parameter."""
        options = BotOptions(token="123:ABC", route_template="/api/bot/{token}/")

        assert options.route_path == "/api/bot/{bot_token}"


class TestBuildBotOptions:
    """Tests for build_bot_options."""

    def test_combines_secrets_and_yaml(self):
        """Test that every YAML field lands in the options."""
        settings = Settings(_env_file=None, telegram_bot_token="123:ABC", telegram_webhook_secret="s")

        options = build_bot_options(settings, _telegram_schema())

        assert options.token == "123:ABC"
        assert options.secret == "s"
        assert options.is_webhook is True
        assert options.webhook_url == "https://bot.example.com/api/123:ABC"
        assert options.polling_interval == 5
        assert options.polling_timeout == 10
        assert options.webhook_refresh_minutes == 30
        assert options.drop_pending_updates is True
        assert options.error_cooldown == 2

    def test_missing_token_raises_configuration_error(self):
        """Test that a missing token is reported before anything starts."""
        settings = Settings(_env_file=None, telegram_bot_token="")

        with pytest.raises(ConfigurationError, match="TELEGRAM_BOT_TOKEN"):
            build_bot_options(settings, _telegram_schema())

    def test_invalid_combination_raises_configuration_error(self):
        """Test that validation errors are wrapped in ConfigurationError."""
        settings = Settings(_env_file=None, telegram_bot_token="123:ABC")
        telegram = _telegram_schema(
            webhook={"host": None, "route_template": "bot/{token}", "refresh_minutes": 60}
        )

        with pytest.raises(ConfigurationError) as exc_info:
            build_bot_options(settings, telegram)

        assert exc_info.value.code == "CFG_INVALID"
        assert "host" in exc_info.value.message
