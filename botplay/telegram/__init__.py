"""
Telegram Bot Module.

Wires an aiogram Bot into the FastAPI application with either delivery mode.

Structure:
    botplay/telegram/
    ├── __init__.py          # This file
    ├── options.py           # BotOptions (token, secret, host, route, intervals)
    ├── bot.py               # Bot and UpdateDispatcher creation
    ├── dispatcher.py        # on_<update_type> discovery and routing
    ├── webhook_service.py   # Webhook registration, refresh loop, teardown
    ├── webhook.py           # Webhook endpoints for FastAPI
    ├── security.py          # Token and secret checks for webhook routes
    ├── polling.py           # Long-polling receiver and service
    ├── health.py            # Bot and webhook health check
    └── handlers/            # Update handler classes
        └── example.py       # Demo handler

Usage:
    from botplay.main import create_app
    from botplay.telegram import UpdateHandler

    class MyHandler(UpdateHandler):
        async def on_message(self, message):
            await message.answer("Hi!")

    app = create_app(handler_cls=MyHandler)

Environment Variables:
    TELEGRAM_BOT_TOKEN: Bot token from BotFather
    TELEGRAM_WEBHOOK_SECRET: Secret Telegram echoes in every webhook request
"""

from botplay.telegram.dispatcher import (
    HandlerRegistry,
    UpdateDispatcher,
    UpdateHandler,
    handles,
)
from botplay.telegram.options import BotOptions, ConnectionMethod

__all__ = [
    "BotOptions",
    "ConnectionMethod",
    "HandlerRegistry",
    "UpdateDispatcher",
    "UpdateHandler",
    "handles",
]
