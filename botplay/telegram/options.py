"""
Bot Options.

Immutable settings shared by the dispatcher, the webhook coordinator,
the webhook authorization boundary and the health check.

Built once at startup from config/.env (token, secret) and
config/settings/telegram.yaml (everything else). Invalid combinations
fail fast with ConfigurationError before any background task starts.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from botplay.core.config import Settings, get_app_config, get_settings
from botplay.core.config_schema import TelegramSchema
from botplay.core.exceptions import ConfigurationError

TOKEN_PLACEHOLDER = "{token}"
ROUTE_TOKEN_PARAM = "bot_token"


class ConnectionMethod(str, Enum):
    """How updates reach the application."""

    POLLING = "polling"
    WEBHOOK = "webhook"


class BotOptions(BaseModel):
    """
    Validated bot settings.

    The route template is relative to the application root and must contain
    the {token} placeholder; the bot token fills it both in the public
    webhook URL and in the FastAPI route.
    """

    model_config = ConfigDict(frozen=True)

    token: str = Field(min_length=1)
    secret: str | None = None
    host: str | None = None
    connection_method: ConnectionMethod = ConnectionMethod.POLLING
    route_template: str = "bot/{token}"
    polling_interval: float = Field(default=5.0, gt=0)
    polling_timeout: int = Field(default=10, ge=0)
    webhook_refresh_minutes: float = Field(default=60.0, gt=0)
    drop_pending_updates: bool = False
    error_cooldown: float = Field(default=2.0, ge=0)

    @field_validator("secret", mode="before")
    @classmethod
    def _blank_secret_is_none(cls, value: str | None) -> str | None:
        # Blank secret in .env means "no secret"
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> "BotOptions":
        if not self.token.strip():
            raise ValueError("token can not be blank")
        if TOKEN_PLACEHOLDER not in self.route_template:
            raise ValueError(f"route_template must contain '{TOKEN_PLACEHOLDER}'")
        if self.connection_method is ConnectionMethod.WEBHOOK and not (self.host or "").strip():
            raise ValueError("host is required for webhook connection method")
        return self

    @property
    def is_webhook(self) -> bool:
        return self.connection_method is ConnectionMethod.WEBHOOK

    @property
    def webhook_url(self) -> str:
        """Public URL Telegram posts updates to."""
        route = self.route_template.strip("/").replace(TOKEN_PLACEHOLDER, self.token)
        return f"{(self.host or '').rstrip('/')}/{route}"

    @property
    def route_path(self) -> str:
        """FastAPI path for the update endpoint, with the token as a path parameter."""
        route = self.route_template.strip("/").replace(TOKEN_PLACEHOLDER, "{" + ROUTE_TOKEN_PARAM + "}")
        return f"/{route}"

    @property
    def webhook_refresh_seconds(self) -> float:
        return self.webhook_refresh_minutes * 60


def build_bot_options(settings: Settings, telegram: TelegramSchema) -> BotOptions:
    """
    Combine secrets and YAML settings into BotOptions.

    Args:
        settings: Secrets from config/.env
        telegram: Validated telegram.yaml contents

    Returns:
        Validated BotOptions

    Raises:
        ConfigurationError: If the combination is invalid
    """
    if not settings.telegram_bot_token:
        raise ConfigurationError(
            "TELEGRAM_BOT_TOKEN not configured. "
            "Set TELEGRAM_BOT_TOKEN environment variable or configure it in config/.env"
        )

    try:
        return BotOptions(
            token=settings.telegram_bot_token,
            secret=settings.telegram_webhook_secret,
            host=telegram.webhook.host,
            connection_method=ConnectionMethod(telegram.connection_method),
            route_template=telegram.webhook.route_template,
            polling_interval=telegram.polling.interval_seconds,
            polling_timeout=telegram.polling.timeout_seconds,
            webhook_refresh_minutes=telegram.webhook.refresh_minutes,
            drop_pending_updates=telegram.drop_pending_updates,
            error_cooldown=telegram.error_cooldown_seconds,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid Telegram configuration:\n{e}") from e


def load_bot_options() -> BotOptions:
    """Build BotOptions from the project's .env and telegram.yaml."""
    return build_bot_options(get_settings(), get_app_config().telegram)
