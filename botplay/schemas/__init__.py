# Pydantic schemas package
from botplay.schemas.base import (
    ApiResponse,
    ErrorDetail,
    ErrorResponse,
    MessageSchema,
    ResponseMetadata,
)

__all__ = [
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "MessageSchema",
    "ResponseMetadata",
]
