"""
Webhook Authorization.

Every request to the webhook routes must carry the bot token as its
route segment and, when a secret is configured, the secret in the
X-Telegram-Bot-Api-Secret-Token header Telegram sends with each delivery.
"""

import hmac
from collections.abc import Awaitable, Callable

from fastapi import Header, Path

from botplay.core.exceptions import AuthenticationError
from botplay.core.logging import get_logger
from botplay.telegram.options import BotOptions

logger = get_logger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def _matches(provided: str | None, expected: str) -> bool:
    if not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def verify_webhook_request(options: BotOptions, bot_token: str | None, secret: str | None) -> None:
    """
    Check the route token and secret header of a webhook request.

    Args:
        options: Bot options holding the expected token and secret
        bot_token: Token taken from the request path
        secret: Value of the secret header, if any

    Raises:
        AuthenticationError: If the token or the secret does not match
    """
    if not _matches(bot_token, options.token):
        logger.warning("Webhook request with invalid bot token")
        raise AuthenticationError("Invalid bot token")

    if options.secret is not None and not _matches(secret, options.secret):
        logger.warning("Webhook request with invalid secret token")
        raise AuthenticationError("Invalid bot secret token")


def webhook_auth(options: BotOptions) -> Callable[..., Awaitable[None]]:
    """
    Build a FastAPI dependency enforcing verify_webhook_request().

    Usage:
        router = APIRouter(dependencies=[Depends(webhook_auth(options))])
    """

    async def dependency(
        bot_token: str = Path(),
        secret: str | None = Header(default=None, alias=SECRET_HEADER),
    ) -> None:
        verify_webhook_request(options, bot_token, secret)

    return dependency
