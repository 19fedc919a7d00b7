"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class ConfigurationError(ApplicationError):
    """Raised at setup time when bot options are missing or malformed."""

    def __init__(self, message: str = "Invalid configuration") -> None:
        super().__init__(message, code="CFG_INVALID")


class AuthenticationError(ApplicationError):
    """Raised when a webhook request carries a wrong token or secret."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")


class LifecycleError(ApplicationError):
    """Raised when a background service is started twice or stopped while stopped."""

    def __init__(self, message: str = "Invalid lifecycle transition") -> None:
        super().__init__(message, code="BOT_LIFECYCLE_CONFLICT")


class HandlerRegistrationError(ApplicationError):
    """Raised when two handler methods resolve to the same update type."""

    def __init__(self, message: str = "Conflicting update handlers") -> None:
        super().__init__(message, code="BOT_HANDLER_CONFLICT")
