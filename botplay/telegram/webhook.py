"""
Webhook Endpoints for Telegram Bot.

Provides the FastAPI router for webhook mode:

    POST /<route>           - Update delivered by Telegram
    POST /<route>/HookUp    - Start the webhook service
    POST /<route>/HookDown  - Stop the webhook service and remove the webhook

<route> is BotOptions.route_template with the bot token in place of {token}.
All three routes are guarded by webhook_auth().
"""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, Response

from botplay.core.logging import get_logger
from botplay.schemas.base import ApiResponse, MessageSchema
from botplay.telegram.options import BotOptions
from botplay.telegram.security import webhook_auth
from botplay.telegram.webhook_service import WebhookService

if TYPE_CHECKING:
    from aiogram import Bot

logger = get_logger(__name__)


def get_webhook_router(bot: "Bot", service: WebhookService, options: BotOptions) -> APIRouter:
    """
    Create a FastAPI router for handling Telegram webhook requests.

    Args:
        bot: aiogram Bot instance, bound to parsed updates
        service: Webhook service routing updates and owning the lifecycle
        options: Bot options (route template, token, secret)

    Returns:
        FastAPI APIRouter with the update and control endpoints
    """
    from aiogram.types import Update

    router = APIRouter(tags=["telegram"], dependencies=[Depends(webhook_auth(options))])
    webhook_path = options.route_path

    @router.post(webhook_path)
    async def telegram_webhook(request: Request) -> Response:
        """
        Handle an incoming Telegram webhook request.

        Always answers 200 once authorized: Telegram retries any other
        response, and a failing update would be redelivered forever.
        """
        try:
            update_data = await request.json()
            update = Update.model_validate(update_data, context={"bot": bot})

            logger.debug(
                "Received Telegram update",
                extra={"update_id": update.update_id},
            )

            await service.handle_update(update)

        except Exception as e:
            logger.error(
                "Error processing Telegram update",
                extra={"error": str(e)},
                exc_info=True,
            )

        return Response(status_code=200)

    @router.post(webhook_path + "/HookUp", response_model=ApiResponse[MessageSchema])
    async def hook_up() -> ApiResponse[MessageSchema]:
        """Start the webhook service. 409 if it is already running."""
        service.start()
        return ApiResponse(data=MessageSchema(message="HookUp Successful!"))

    @router.post(webhook_path + "/HookDown", response_model=ApiResponse[MessageSchema])
    async def hook_down() -> ApiResponse[MessageSchema]:
        """Stop the webhook service and remove the webhook. 409 if already stopped."""
        await service.stop()
        return ApiResponse(data=MessageSchema(message="HookDown Successful!"))

    return router
