"""
Unit Test Fixtures.

Fixtures for unit tests - the Bot API is always mocked.
Unit tests should be fast and isolated, never talking to Telegram.
"""

import asyncio
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.types import Update


# =============================================================================
# Update Builders
# =============================================================================


def message_update(update_id: int, text: str = "hello", chat_id: int = 42) -> Update:
    """Build a real aiogram Update carrying a private text message."""
    return Update.model_validate(
        {
            "update_id": update_id,
            "message": {
                "message_id": update_id,
                "date": 1700000000,
                "chat": {"id": chat_id, "type": "private"},
                "from": {"id": chat_id, "is_bot": False, "first_name": "Test"},
                "text": text,
            },
        }
    )


def callback_update(update_id: int, data: str = "CallbackData") -> Update:
    """Build a real aiogram Update carrying a callback query."""
    return Update.model_validate(
        {
            "update_id": update_id,
            "callback_query": {
                "id": str(update_id),
                "from": {"id": 42, "is_bot": False, "first_name": "Test"},
                "chat_instance": "1",
                "data": data,
            },
        }
    )


@pytest.fixture
def make_message_update() -> Callable[..., Update]:
    """Provide the message update builder."""
    return message_update


@pytest.fixture
def make_callback_update() -> Callable[..., Update]:
    """Provide the callback query update builder."""
    return callback_update


# =============================================================================
# Bot Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_bot() -> MagicMock:
    """
    Mock aiogram Bot for unit tests.

    Every Bot API call used by the application is an AsyncMock.
    get_updates blocks until cancelled unless a test overrides it.

    Usage:
        async def test_hook_up(mock_bot, webhook_options):
            manager = WebhookManager(mock_bot, dispatcher, webhook_options)
            await manager.hook_up()
            mock_bot.set_webhook.assert_awaited_once()
    """

    async def _block_forever(*args: Any, **kwargs: Any) -> list[Update]:
        await asyncio.Event().wait()
        return []

    me = MagicMock()
    me.username = "test_bot"

    bot = MagicMock()
    bot.get_me = AsyncMock(return_value=me)
    bot.set_webhook = AsyncMock(return_value=True)
    bot.delete_webhook = AsyncMock(return_value=True)
    bot.get_webhook_info = AsyncMock()
    bot.get_updates = AsyncMock(side_effect=_block_forever)
    bot.send_message = AsyncMock()
    bot.session.close = AsyncMock()
    return bot


# =============================================================================
# Async Helpers
# =============================================================================


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the event loop until predicate() holds, failing after timeout."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.001)


@pytest.fixture
def eventually() -> Callable[..., Any]:
    """Provide wait_until to async tests."""
    return wait_until
