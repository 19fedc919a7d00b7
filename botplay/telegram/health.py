"""
Telegram Health Check.

Reports whether the bot can reach Telegram and, in webhook mode, whether
the webhook registered at Telegram points at this application.

Statuses:
    healthy   - bot identity resolved (and webhook URL matches)
    degraded  - bot identity missing, webhook missing, or URL mismatch
    unhealthy - any error talking to Telegram
"""

from typing import TYPE_CHECKING, Any

from botplay.core.logging import get_logger
from botplay.core.utils import obfuscate_webhook_url
from botplay.telegram.options import BotOptions

if TYPE_CHECKING:
    from aiogram import Bot

logger = get_logger(__name__)


async def check_telegram(bot: "Bot", options: BotOptions) -> dict[str, Any]:
    """
    Check the bot connection and webhook registration.

    Args:
        bot: Bot instance
        options: Bot options with the expected webhook URL

    Returns:
        Dict with status and a human readable detail
    """
    try:
        me = await bot.get_me()
        if me is None:
            return {"status": "degraded", "detail": "Bot is not properly connected to Telegram"}

        if options.is_webhook:
            info = await bot.get_webhook_info()
            if info is None or not info.url:
                return {"status": "degraded", "detail": "Webhook is not properly configured"}

            if info.url.lower() != options.webhook_url.lower():
                return {
                    "status": "degraded",
                    "detail": (
                        "Webhook URL mismatch. "
                        f"Expected: {obfuscate_webhook_url(options.webhook_url)}, "
                        f"Actual: {obfuscate_webhook_url(info.url)}"
                    ),
                }

        return {
            "status": "healthy",
            "detail": f"Bot {me.username} is connected and ready to receive updates",
        }

    except Exception as e:
        logger.warning("Telegram health check failed", extra={"error": str(e)})
        return {
            "status": "unhealthy",
            "detail": "Failed to connect to Telegram",
            "error": str(e),
        }
