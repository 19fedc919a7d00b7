"""
Unit tests for the webhook lifecycle.

Tests WebhookManager registration calls and the WebhookService state machine.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from botplay.core.exceptions import LifecycleError
from botplay.telegram.dispatcher import UpdateDispatcher, UpdateHandler
from botplay.telegram.webhook_service import WebhookManager, WebhookService


class MessageHandler(UpdateHandler):
    """Handler for message and poll updates."""

    def __init__(self, bot=None):
        super().__init__(bot)
        self.messages = []

    async def on_message(self, message):
        self.messages.append(message.text)

    async def on_poll(self, poll):
        pass


def _service(bot, options):
    dispatcher = UpdateDispatcher(MessageHandler(bot))
    manager = WebhookManager(bot, dispatcher, options)
    return WebhookService(manager, dispatcher, options), dispatcher


class TestWebhookManager:
    """Tests for WebhookManager."""

    @pytest.mark.asyncio
    async def test_hook_up_registers_url_updates_and_secret(self, mock_bot, webhook_options):
        """Test that setWebhook receives the full URL, allowed updates and secret."""
        dispatcher = UpdateDispatcher(MessageHandler())
        manager = WebhookManager(mock_bot, dispatcher, webhook_options)

        assert await manager.hook_up() is True

        mock_bot.set_webhook.assert_awaited_once_with(
            url=f"https://bot.example.com/bot/{webhook_options.token}",
            allowed_updates=["message", "poll"],
            secret_token=webhook_options.secret,
            drop_pending_updates=False,
        )

    @pytest.mark.asyncio
    async def test_hook_up_failure_returns_false(self, mock_bot, webhook_options):
        """Test that a failed registration is reported, not raised."""
        mock_bot.set_webhook.side_effect = RuntimeError("network down")
        manager = WebhookManager(mock_bot, UpdateDispatcher(MessageHandler()), webhook_options)

        assert await manager.hook_up() is False

    @pytest.mark.asyncio
    async def test_hook_down_removes_webhook(self, mock_bot, webhook_options):
        """Test that hook_down calls deleteWebhook."""
        manager = WebhookManager(mock_bot, UpdateDispatcher(MessageHandler()), webhook_options)

        assert await manager.hook_down() is True
        mock_bot.delete_webhook.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_hook_down_failure_returns_false(self, mock_bot, webhook_options):
        """Test that a failed removal is reported, not raised."""
        mock_bot.delete_webhook.side_effect = RuntimeError("network down")
        manager = WebhookManager(mock_bot, UpdateDispatcher(MessageHandler()), webhook_options)

        assert await manager.hook_down() is False


class TestWebhookService:
    """Tests for WebhookService lifecycle."""

    @pytest.mark.asyncio
    async def test_start_then_immediate_stop_registers_once(self, mock_bot, webhook_options):
        """Test that start followed by stop sets and deletes the webhook once each."""
        service, _ = _service(mock_bot, webhook_options)

        service.start()
        await service.stop()

        assert mock_bot.set_webhook.await_count == 1
        assert mock_bot.delete_webhook.await_count == 1
        assert service.is_running is False

    @pytest.mark.asyncio
    async def test_no_registration_after_stop(self, mock_bot, options_factory, eventually):
        """Test that the refresh loop re-registers while running and never after stop."""
        options = options_factory(connection_method="webhook", webhook_refresh_minutes=0.0001)
        service, _ = _service(mock_bot, options)

        service.start()
        await eventually(lambda: mock_bot.set_webhook.await_count >= 2)
        await service.stop()
        registrations = mock_bot.set_webhook.await_count

        await asyncio.sleep(0.05)

        assert mock_bot.set_webhook.await_count == registrations
        mock_bot.delete_webhook.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_twice_raises(self, mock_bot, webhook_options):
        """Test that starting a running service is rejected."""
        service, _ = _service(mock_bot, webhook_options)
        service.start()

        with pytest.raises(LifecycleError, match="already running"):
            service.start()

        await service.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start_raises(self, mock_bot, webhook_options):
        """Test that stopping a stopped service is rejected and does not touch Telegram."""
        service, _ = _service(mock_bot, webhook_options)

        with pytest.raises(LifecycleError, match="already stopped"):
            await service.stop()

        mock_bot.delete_webhook.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_registration_keeps_service_running(self, mock_bot, webhook_options):
        """Test that a failing setWebhook does not end the refresh loop."""
        mock_bot.set_webhook.side_effect = RuntimeError("network down")
        service, _ = _service(mock_bot, webhook_options)

        service.start()
        await asyncio.sleep(0.01)

        assert service.is_running is True
        await service.stop()

    @pytest.mark.asyncio
    async def test_handle_update_routes_to_handler(self, mock_bot, webhook_options, make_message_update):
        """Test that webhook-delivered updates reach the dispatcher."""
        service, dispatcher = _service(mock_bot, webhook_options)

        await service.handle_update(make_message_update(1, text="via webhook"))

        assert dispatcher.handler.messages == ["via webhook"]

    @pytest.mark.asyncio
    async def test_handle_update_never_raises(self, mock_bot, webhook_options, make_message_update):
        """Test that routing failures are contained."""
        service, _ = _service(mock_bot, webhook_options)

        class Failing(UpdateHandler):
            async def on_message(self, message):
                raise ValueError("bad")

        service.dispatcher = UpdateDispatcher(Failing())
        service.dispatcher.handle_error = AsyncMock()

        await service.handle_update(make_message_update(2))

        service.dispatcher.handle_error.assert_awaited_once()
