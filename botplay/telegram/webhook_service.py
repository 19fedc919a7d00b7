"""
Webhook Lifecycle.

WebhookManager talks to the Bot API (setWebhook / deleteWebhook).
WebhookService keeps the webhook registered: it re-registers it every
refresh interval while running and removes it when stopped.

States:
    Stopped --start()--> Running --stop()--> Stopped

start() while running and stop() while stopped raise LifecycleError.
"""

import asyncio
from typing import TYPE_CHECKING

from botplay.core.concurrency import BackgroundTask, wait_for_stop
from botplay.core.logging import get_logger, log_with_source
from botplay.core.utils import obfuscate_webhook_url
from botplay.telegram.dispatcher import UpdateDispatcher
from botplay.telegram.options import BotOptions

if TYPE_CHECKING:
    from aiogram import Bot
    from aiogram.types import Update

logger = get_logger(__name__)


class WebhookManager:
    """
    Registers and removes the bot webhook.

    Failures are logged and reported through the return value; they never
    raise, since the refresh loop retries on its next cycle.
    """

    def __init__(self, bot: "Bot", dispatcher: UpdateDispatcher, options: BotOptions) -> None:
        self.bot = bot
        self.dispatcher = dispatcher
        self.options = options

    async def hook_up(self) -> bool:
        """Register the webhook URL. Returns True on success."""
        url = obfuscate_webhook_url(self.options.webhook_url)
        log_with_source(logger, "telegram", "info", "Setting webhook", url=url)

        try:
            await self.bot.set_webhook(
                url=self.options.webhook_url,
                allowed_updates=self.dispatcher.allowed_updates(),
                secret_token=self.options.secret,
                drop_pending_updates=self.options.drop_pending_updates,
            )
        except Exception as e:
            log_with_source(
                logger,
                "telegram",
                "error",
                "Failed to set webhook",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        log_with_source(logger, "telegram", "info", "Webhook set", url=url)
        return True

    async def hook_down(self) -> bool:
        """Remove the webhook. Returns True on success."""
        log_with_source(logger, "telegram", "info", "Removing webhook")

        try:
            await self.bot.delete_webhook()
        except Exception as e:
            log_with_source(
                logger,
                "telegram",
                "error",
                "Failed to remove webhook",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        log_with_source(logger, "telegram", "info", "Webhook removed")
        return True


class WebhookService:
    """
    Background service keeping the webhook registered.

    Usage:
        service = WebhookService(WebhookManager(bot, dispatcher, options), dispatcher, options)
        service.start()
        ...
        await service.stop()
    """

    def __init__(
        self,
        manager: WebhookManager,
        dispatcher: UpdateDispatcher,
        options: BotOptions,
    ) -> None:
        self.manager = manager
        self.dispatcher = dispatcher
        self.options = options
        self._task = BackgroundTask("Webhook service")

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    def start(self) -> None:
        """
        Spawn the refresh loop.

        Raises:
            LifecycleError: If the service is already running
        """
        self._task.start(self._keep_alive)

    async def stop(self) -> None:
        """
        Stop the refresh loop, wait for it to exit, then remove the webhook once.

        Raises:
            LifecycleError: If the service is already stopped
        """
        await self._task.stop()
        await self.manager.hook_down()

    async def handle_update(self, update: "Update") -> None:
        """Route one webhook-delivered update. Never raises."""
        await self.dispatcher.route(update)

    async def _keep_alive(self, stop_event: asyncio.Event) -> None:
        log_with_source(
            logger,
            "telegram",
            "info",
            "Webhook service started",
            refresh_minutes=self.options.webhook_refresh_minutes,
        )

        # Registers at least once, even when stopped right after start
        while True:
            await self.manager.hook_up()
            if await wait_for_stop(stop_event, self.options.webhook_refresh_seconds):
                break

        log_with_source(logger, "telegram", "info", "Webhook service stopped")
