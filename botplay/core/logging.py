"""
Logging Setup.

structlog renders every record, stdlib logging routes it. Third-party
libraries (uvicorn, aiogram) log through stdlib and get the same rendering
through ProcessorFormatter.foreign_pre_chain.

Settings come from config/settings/logging.yaml (validated LoggingSchema):
    level    - root level, overridable per call
    format   - "console" (colored, for development) or "json"
    handlers - console on/off, rotating JSONL file on/off

Records from the polling and webhook loops carry source="telegram"; records
emitted inside an HTTP request carry the request_id bound by
RequestContextMiddleware.

Usage:
    from botplay.core.logging import get_logger, log_with_source, setup_logging

    setup_logging(level="DEBUG")
    logger = get_logger(__name__)
    logger.info("Bot created", extra={"connection_method": "polling"})
    log_with_source(logger, "telegram", "warning", "Polling failed", error="timeout")
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog
from structlog.typing import Processor

from botplay.core.config import find_project_root, get_app_config
from botplay.core.config_schema import FileHandlerSchema

# aiogram.event logs every outgoing Bot API call at INFO
QUIET_LOGGERS = ("uvicorn.access", "aiogram.event")


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]


def _rotating_file_handler(settings: FileHandlerSchema, formatter: logging.Formatter) -> logging.Handler:
    """JSONL file handler; the path is relative to the project root."""
    path = find_project_root() / settings.path
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=settings.max_bytes,
        backupCount=settings.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(level: str | None = None, format_type: str | None = None) -> None:
    """
    Configure structlog and the root logger from logging.yaml.

    Safe to call more than once; existing root handlers are replaced.

    Args:
        level: Overrides the configured level (DEBUG, INFO, WARNING, ...)
        format_type: Overrides the configured console format ("console" or "json")
    """
    settings = get_app_config().logging
    processors = _shared_processors()

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    json_formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=processors,
    )
    if (format_type or settings.format) == "console":
        console_formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=True),
            foreign_pre_chain=processors,
        )
    else:
        console_formatter = json_formatter

    root = logging.getLogger()
    root.setLevel((level or settings.level).upper())
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if settings.handlers.console.enabled:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(console_formatter)
        root.addHandler(console)

    if settings.handlers.file.enabled:
        root.addHandler(_rotating_file_handler(settings.handlers.file, json_formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log with an explicit source tag.

    Background loops run outside any HTTP request, so nothing else marks
    where their records come from.

    Args:
        logger: Logger from get_logger()
        source: Origin tag, e.g. "telegram" for the polling and webhook loops
        level: Method name on the logger (debug, info, warning, error)
        message: Event text
        **kwargs: Extra structured fields
    """
    getattr(logger, level.lower())(message, source=source, **kwargs)
