"""
botplay.

Wires an aiogram Telegram bot into a FastAPI application.

- core/: Configuration, logging, exceptions, HTTP middleware
- api/: Health endpoints
- schemas/: Standard response envelopes
- telegram/: Update dispatch, webhook lifecycle, polling loop
"""
