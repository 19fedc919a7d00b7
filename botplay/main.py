"""
FastAPI Application Entry Point.

Builds the application around one update handler class. The delivery mode
comes from telegram.yaml:

- polling: a PollingService runs for the application's lifetime
- webhook: the webhook routes are mounted and a WebhookService keeps the
  webhook registered; it can be stopped and restarted through HookDown/HookUp

Either service is started when the application starts and stopped when it
shuts down.
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator

from fastapi import FastAPI

from botplay.api import health
from botplay.core.config import get_app_config
from botplay.core.exception_handlers import register_exception_handlers
from botplay.core.logging import get_logger, setup_logging
from botplay.core.middleware import RequestContextMiddleware
from botplay.telegram.bot import cleanup_bot, create_bot, create_dispatcher
from botplay.telegram.options import BotOptions, load_bot_options
from botplay.telegram.polling import PollingService, UpdateReceiver
from botplay.telegram.webhook import get_webhook_router
from botplay.telegram.webhook_service import WebhookManager, WebhookService

if TYPE_CHECKING:
    from aiogram import Bot

logger = get_logger(__name__)

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager: runs the bot service while the app is up."""
    app_config = get_app_config()
    setup_logging()

    options: BotOptions = app.state.bot_options
    service: WebhookService | PollingService = app.state.bot_service

    logger.info(
        "Application starting",
        extra={
            "app_name": app_config.application.name,
            "env": app_config.application.environment,
            "connection_method": options.connection_method.value,
        },
    )
    service.start()

    try:
        yield
    finally:
        # HookDown may already have stopped the webhook service
        if service.is_running:
            await service.stop()
        await cleanup_bot(app.state.bot)
        logger.info("Application shutting down")


def create_app(
    handler_cls: type | None = None,
    options: BotOptions | None = None,
    bot: "Bot | None" = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        handler_cls: Update handler class (defaults to ExampleUpdateHandler)
        options: Bot options (defaults to config/.env + telegram.yaml)
        bot: Bot instance (defaults to a new aiogram Bot)

    Raises:
        ConfigurationError: If the bot options are invalid
        HandlerRegistrationError: If the handler class maps two methods to one update type
    """
    app_config = get_app_config()
    app_settings = app_config.application

    if handler_cls is None:
        from botplay.telegram.handlers import ExampleUpdateHandler

        handler_cls = ExampleUpdateHandler

    options = options or load_bot_options()
    bot = bot or create_bot(options)
    dispatcher = create_dispatcher(handler_cls, bot, options)

    app = FastAPI(
        title=app_settings.name,
        description=app_settings.description,
        version=app_settings.version,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)
    app.include_router(health.router, tags=["health"])

    service: WebhookService | PollingService
    if options.is_webhook:
        service = WebhookService(WebhookManager(bot, dispatcher, options), dispatcher, options)
        app.include_router(get_webhook_router(bot, service, options))
    else:
        service = PollingService(UpdateReceiver(bot, dispatcher, options), options)

    app.state.bot = bot
    app.state.bot_options = options
    app.state.dispatcher = dispatcher
    app.state.bot_service = service
    app.state.ready_timeout_seconds = app_settings.health_checks.ready_timeout_seconds

    return app


def get_app() -> FastAPI:
    """
    Get the application instance (lazy initialization).

    This function creates the app on first call and caches it.
    Use this instead of importing `app` directly to avoid
    import-time configuration errors.
    """
    global _app
    if _app is None:
        _app = create_app()
    return _app


# For uvicorn: `uvicorn botplay.main:app`
def __getattr__(name: str) -> FastAPI:
    """Support lazy access to `app` for uvicorn compatibility."""
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
