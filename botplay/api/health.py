"""
Health Check Endpoints.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (Telegram reachable, webhook in place)
"""

import asyncio
from typing import Any

from fastapi import APIRouter, HTTPException, Request

from botplay.core.logging import get_logger
from botplay.core.utils import utc_now
from botplay.telegram.health import check_telegram

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Liveness check.

    Returns 200 if the process is running.
    No dependency checks - this endpoint should always respond quickly.
    """
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check(request: Request) -> dict[str, Any]:
    """
    Readiness check.

    Returns 200 when the Telegram check is healthy or degraded,
    503 when it is unhealthy or does not answer in time.
    """
    state = request.app.state
    bot = getattr(state, "bot", None)
    options = getattr(state, "bot_options", None)

    if bot is None or options is None:
        telegram_result: dict[str, Any] = {"status": "not_configured"}
    else:
        try:
            async with asyncio.timeout(getattr(state, "ready_timeout_seconds", 5)):
                telegram_result = await check_telegram(bot, options)
        except TimeoutError:
            telegram_result = {"status": "unhealthy", "error": "check timed out"}

    checks = {"telegram": telegram_result}

    if telegram_result.get("status") == "unhealthy":
        logger.warning("Readiness check failed", extra={"checks": checks})
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "checks": checks,
                "timestamp": utc_now().isoformat(),
            },
        )

    overall = "degraded" if telegram_result.get("status") == "degraded" else "healthy"
    return {
        "status": overall,
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }
