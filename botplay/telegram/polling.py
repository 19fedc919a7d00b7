"""
Polling Mode.

Pull-based delivery for environments without a public HTTPS endpoint.

UpdateReceiver removes any webhook (Telegram will not deliver by both
means), then long-polls getUpdates and routes every update of a batch
sequentially, in the order Telegram returned them.

PollingService restarts the receiver after any failure, waiting
polling_interval seconds first. It only ends when stopped.
"""

import asyncio
from typing import TYPE_CHECKING

from botplay.core.concurrency import BackgroundTask, wait_for_stop
from botplay.core.logging import get_logger, log_with_source
from botplay.telegram.dispatcher import UpdateDispatcher
from botplay.telegram.options import BotOptions

if TYPE_CHECKING:
    from aiogram import Bot
    from aiogram.types import Update

logger = get_logger(__name__)


class UpdateReceiver:
    """Fetches update batches and feeds them to the dispatcher."""

    def __init__(self, bot: "Bot", dispatcher: UpdateDispatcher, options: BotOptions) -> None:
        self.bot = bot
        self.dispatcher = dispatcher
        self.options = options
        # Kept across receive() calls so a restart does not refetch confirmed updates
        self.offset: int | None = None

    async def receive(self, stop_event: asyncio.Event) -> None:
        """
        Receive updates until the stop signal fires.

        Raises:
            Exception: Whatever the Bot API client raised; PollingService recovers
        """
        me = await self.bot.get_me()
        log_with_source(
            logger,
            "telegram",
            "info",
            "Start receiving updates",
            bot_username=me.username,
        )

        await self.bot.delete_webhook(drop_pending_updates=self.options.drop_pending_updates)

        allowed_updates = self.dispatcher.allowed_updates()

        while not stop_event.is_set():
            updates = await self._next_batch(stop_event, self.offset, allowed_updates)
            for update in updates:
                await self.dispatcher.route(update)
                self.offset = update.update_id + 1

    async def _next_batch(
        self,
        stop_event: asyncio.Event,
        offset: int | None,
        allowed_updates: list[str],
    ) -> list["Update"]:
        """Long-poll one batch, giving up early if the stop signal fires."""
        fetch = asyncio.ensure_future(
            self.bot.get_updates(
                offset=offset,
                timeout=self.options.polling_timeout,
                allowed_updates=allowed_updates,
            )
        )
        stopped = asyncio.ensure_future(stop_event.wait())
        try:
            done, _ = await asyncio.wait({fetch, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for future in (fetch, stopped):
                if not future.done():
                    future.cancel()
            await asyncio.gather(fetch, stopped, return_exceptions=True)

        if fetch in done:
            return fetch.result()
        return []


class PollingService:
    """
    Background service running the receiver forever.

    Usage:
        service = PollingService(UpdateReceiver(bot, dispatcher, options), options)
        service.start()
        ...
        await service.stop()
    """

    def __init__(self, receiver: UpdateReceiver, options: BotOptions) -> None:
        self.receiver = receiver
        self.options = options
        self._task = BackgroundTask("Polling service")

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    def start(self) -> None:
        """
        Spawn the polling loop.

        Raises:
            LifecycleError: If the service is already running
        """
        self._task.start(self.run)

    async def stop(self) -> None:
        """
        Stop the polling loop and wait for it to exit.

        Raises:
            LifecycleError: If the service is already stopped
        """
        await self._task.stop()

    async def run(self, stop_event: asyncio.Event) -> None:
        """Run the receiver until the stop signal fires, cooling down after failures."""
        log_with_source(logger, "telegram", "info", "Polling service started")

        while not stop_event.is_set():
            try:
                await self.receiver.receive(stop_event)
            except Exception as e:
                log_with_source(
                    logger,
                    "telegram",
                    "error",
                    "Polling failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    cooldown_seconds=self.options.polling_interval,
                )
                if await wait_for_stop(stop_event, self.options.polling_interval):
                    break

        log_with_source(logger, "telegram", "info", "Polling service stopped")
