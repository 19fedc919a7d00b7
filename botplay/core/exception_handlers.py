"""
Exception Handlers.

Turns exceptions escaping a route into the ErrorResponse envelope:

    AuthenticationError       401  wrong route token or secret header
    LifecycleError            409  HookUp while running, HookDown while stopped
    RequestValidationError    422  VAL_REQUEST_INVALID
    other ApplicationError    500  its own code
    anything else             500  SYS_INTERNAL_ERROR, details hidden

Usage:
    app = FastAPI()
    register_exception_handlers(app)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from botplay.core.exceptions import (
    ApplicationError,
    AuthenticationError,
    ConfigurationError,
    HandlerRegistrationError,
    LifecycleError,
)
from botplay.core.logging import get_logger
from botplay.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    AuthenticationError: 401,
    LifecycleError: 409,
    ConfigurationError: 500,
    HandlerRegistrationError: 500,
}


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
        metadata=ResponseMetadata(request_id=request_id),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    status_code = EXCEPTION_STATUS_MAP.get(type(exc), 500)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Application error",
        extra={"code": exc.code, "error": exc.message, "status": status_code, "method": request.method},
    )
    return _error_response(request, status_code, exc.code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", "Validation error"),
            "type": err.get("type", "unknown"),
        }
        for err in exc.errors()
    ]
    logger.warning("Request validation failed", extra={"error_count": len(errors)})
    return _error_response(
        request,
        422,
        "VAL_REQUEST_INVALID",
        "Request validation failed",
        details={"validation_errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500; the exception text is logged, never returned."""
    logger.exception("Unhandled exception", extra={"exception_type": type(exc).__name__})
    return _error_response(request, 500, "SYS_INTERNAL_ERROR", "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
