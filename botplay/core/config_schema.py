"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    LoggingSchema      → logging.yaml
    TelegramSchema     → telegram.yaml
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ServerSchema(_StrictBase):
    host: str
    port: int


class HealthChecksSchema(_StrictBase):
    ready_timeout_seconds: int


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    server: ServerSchema
    health_checks: HealthChecksSchema


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: str
    handlers: HandlersSchema


# =============================================================================
# telegram.yaml
# =============================================================================


class PollingSchema(_StrictBase):
    interval_seconds: float = Field(gt=0)
    timeout_seconds: int = Field(ge=0)


class WebhookSchema(_StrictBase):
    host: str | None = None
    route_template: str
    refresh_minutes: float = Field(gt=0)


class TelegramSchema(_StrictBase):
    connection_method: Literal["polling", "webhook"]
    drop_pending_updates: bool
    error_cooldown_seconds: float = Field(ge=0)
    polling: PollingSchema
    webhook: WebhookSchema
