"""
Bot and Dispatcher Configuration.

Creates the aiogram Bot and the UpdateDispatcher for a handler class.
aiogram is imported lazily to prevent import-time failures in tooling
that only needs configuration.
"""

from typing import TYPE_CHECKING, Any

from botplay.core.logging import get_logger
from botplay.telegram.dispatcher import UpdateDispatcher, registry_for
from botplay.telegram.options import BotOptions

if TYPE_CHECKING:
    from aiogram import Bot

logger = get_logger(__name__)


def create_bot(options: BotOptions) -> "Bot":
    """
    Create and configure the aiogram Bot instance.

    Args:
        options: Validated bot options

    Returns:
        Configured Bot instance
    """
    from aiogram import Bot
    from aiogram.client.default import DefaultBotProperties
    from aiogram.enums import ParseMode

    bot = Bot(
        token=options.token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    logger.info("Telegram bot created", extra={"connection_method": options.connection_method.value})
    return bot


def create_dispatcher(handler_cls: type, bot: "Bot", options: BotOptions) -> UpdateDispatcher:
    """
    Instantiate the handler and wrap it in an UpdateDispatcher.

    The handler registry is resolved here, at startup, so registration
    errors surface before any background task starts.

    Args:
        handler_cls: Handler class; called with the bot as its only argument
        bot: Bot instance handed to the handler
        options: Validated bot options

    Returns:
        Dispatcher bound to a new handler instance
    """
    registry = registry_for(handler_cls)
    handler: Any = handler_cls(bot)
    dispatcher = UpdateDispatcher(handler, registry=registry, error_cooldown=options.error_cooldown)

    logger.info(
        "Telegram dispatcher created",
        extra={
            "handler": handler_cls.__qualname__,
            "update_types": dispatcher.allowed_updates(),
        },
    )
    return dispatcher


async def cleanup_bot(bot: "Bot") -> None:
    """
    Close the bot's HTTP session on shutdown.

    Args:
        bot: Bot instance to cleanup
    """
    await bot.session.close()
    logger.info("Bot session closed")
