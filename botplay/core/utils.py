"""
Core Utilities.

Shared utility functions used across the package.
"""

import re
from datetime import datetime, timezone

# <bot id>:<secret>, as issued by BotFather
BOT_TOKEN_PATTERN = re.compile(r"\d+:[A-Za-z0-9_-]+")


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application should be timezone-naive
    and assumed to be UTC.

    Returns:
        Current UTC time with tzinfo stripped
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def obfuscate_webhook_url(url: str | None) -> str | None:
    """
    Mask the last path segment of a webhook URL.

    The webhook route embeds the bot token in its last segment, so every
    character after the final '/' is replaced with '*'.

    Args:
        url: Webhook URL, possibly empty

    Returns:
        The URL with its last segment masked, or the input unchanged when blank
    """
    if not url or not url.strip():
        return url

    safe_length = url.rfind("/") + 1
    return url[:safe_length] + "*" * (len(url) - safe_length)


def mask_bot_tokens(text: str) -> str:
    """Replace every bot-token-shaped substring with '*' of the same length."""
    return BOT_TOKEN_PATTERN.sub(lambda match: "*" * len(match.group()), text)
