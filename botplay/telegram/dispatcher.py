"""
Update Dispatcher.

Routes each incoming Telegram update to the handler method named after its
update type, regardless of whether the update arrived by polling or webhook.

A handler is any object exposing ``on_<update_type>`` methods that take
exactly one argument, the update payload:

    class MyHandler(UpdateHandler):
        async def on_message(self, message: Message) -> None:
            await message.answer("Hello!")

        async def on_callback_query(self, query: CallbackQuery) -> None:
            await query.answer()

        @handles(UpdateType.POLL_ANSWER)
        async def record_vote(self, answer: PollAnswer) -> None:
            ...

The method set is inspected once per handler type and frozen into a
HandlerRegistry. Names that start with ``on_`` but do not match an update
type are ignored. Two methods resolving to the same update type are a
registration error.

Only the update types present in the registry are requested from Telegram
(``allowed_updates``), for both webhook registration and polling.
"""

import asyncio
import inspect
import threading
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from aiogram.enums import UpdateType
from aiogram.exceptions import (
    TelegramAPIError,
    TelegramBadRequest,
    TelegramConflictError,
    TelegramEntityTooLarge,
    TelegramForbiddenError,
    TelegramNetworkError,
    TelegramNotFound,
    TelegramRetryAfter,
    TelegramServerError,
    TelegramUnauthorizedError,
)

from botplay.core.exceptions import HandlerRegistrationError
from botplay.core.logging import get_logger, log_with_source

if TYPE_CHECKING:
    from aiogram import Bot
    from aiogram.types import Update

logger = get_logger(__name__)

HANDLER_PREFIX = "on_"
_EXPLICIT_MARK = "__botplay_update_type__"

# Bot API status codes behind aiogram's exception classes
API_ERROR_CODES: dict[type[TelegramAPIError], int] = {
    TelegramBadRequest: 400,
    TelegramUnauthorizedError: 401,
    TelegramForbiddenError: 403,
    TelegramNotFound: 404,
    TelegramConflictError: 409,
    TelegramEntityTooLarge: 413,
    TelegramRetryAfter: 429,
    TelegramServerError: 500,
}

F = TypeVar("F", bound=Callable[..., Any])


def handles(update_type: UpdateType | str) -> Callable[[F], F]:
    """
    Register a method for an update type explicitly, whatever its name.

    Args:
        update_type: UpdateType member or its string value (e.g. "poll_answer")

    Raises:
        ValueError: If update_type is not a known update type
    """
    kind = UpdateType(update_type)

    def decorator(func: F) -> F:
        setattr(func, _EXPLICIT_MARK, kind)
        return func

    return decorator


def resolve_update_type(update: "Update") -> UpdateType | None:
    """Return the type of the update, i.e. its first populated payload field."""
    for update_type in UpdateType:
        if getattr(update, update_type.value, None) is not None:
            return update_type
    return None


def _parse_update_type(name: str) -> UpdateType | None:
    """Map ``on_<value>`` to its UpdateType, or None for anything else."""
    if not name.startswith(HANDLER_PREFIX):
        return None
    try:
        return UpdateType(name[len(HANDLER_PREFIX):])
    except ValueError:
        return None


def _takes_single_argument(func: Callable[..., Any]) -> bool:
    """True if the function takes exactly one positional argument besides self."""
    try:
        parameters = list(inspect.signature(func).parameters.values())[1:]
    except (TypeError, ValueError):
        return False
    if len(parameters) != 1:
        return False
    return parameters[0].kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    )


class HandlerRegistry:
    """
    Immutable mapping from update type to handler method.

    Build with HandlerRegistry.build(handler_type). An update type is present
    if and only if the handler type defines a single-argument method named
    ``on_<update_type>`` or marked with @handles(update_type).
    """

    def __init__(self, handler_type: type, methods: Mapping[UpdateType, Callable[..., Any]]) -> None:
        self.handler_type = handler_type
        self._methods: Mapping[UpdateType, Callable[..., Any]] = MappingProxyType(dict(methods))

    @classmethod
    def build(cls, handler_type: type) -> "HandlerRegistry":
        """
        Inspect the instance methods of handler_type, inherited ones included.

        Raises:
            HandlerRegistrationError: If two methods resolve to the same update type
        """
        methods: dict[UpdateType, Callable[..., Any]] = {}
        names: dict[UpdateType, str] = {}

        for name in sorted(dir(handler_type)):
            if name.startswith("__"):
                continue
            attr = inspect.getattr_static(handler_type, name)
            if not inspect.isfunction(attr):
                continue

            update_type = getattr(attr, _EXPLICIT_MARK, None) or _parse_update_type(name)
            if update_type is None or not _takes_single_argument(attr):
                continue

            if update_type in methods:
                raise HandlerRegistrationError(
                    f"{handler_type.__qualname__}: both '{names[update_type]}' and "
                    f"'{name}' handle '{update_type.value}' updates"
                )
            methods[update_type] = attr
            names[update_type] = name

        logger.debug(
            "Handler registry built",
            extra={
                "handler": handler_type.__qualname__,
                "update_types": sorted(t.value for t in methods),
            },
        )
        return cls(handler_type, methods)

    def get(self, update_type: UpdateType) -> Callable[..., Any] | None:
        return self._methods.get(update_type)

    @property
    def handled_types(self) -> frozenset[UpdateType]:
        return frozenset(self._methods)

    def __contains__(self, update_type: object) -> bool:
        return update_type in self._methods

    def __iter__(self) -> Iterator[UpdateType]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)


_registry_cache: dict[type, HandlerRegistry] = {}
_registry_lock = threading.Lock()


def registry_for(handler_type: type) -> HandlerRegistry:
    """
    Get the registry of a handler type, building it on first use.

    UpdateHandler subclasses carry a registry built at class creation.
    Other handler types are built once and cached.
    """
    registry = getattr(handler_type, "registry", None)
    if isinstance(registry, HandlerRegistry) and registry.handler_type is handler_type:
        return registry

    with _registry_lock:
        if handler_type not in _registry_cache:
            _registry_cache[handler_type] = HandlerRegistry.build(handler_type)
        return _registry_cache[handler_type]


class UpdateHandler:
    """
    Optional base class for update handlers.

    Each subclass gets its HandlerRegistry built once, when the class is
    created, so registration errors surface at import time.

    Attributes:
        bot: Bot used to answer updates (None in tests)
        logger: structlog logger named after the handler class
    """

    registry: ClassVar[HandlerRegistry]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.registry = HandlerRegistry.build(cls)

    def __init__(self, bot: "Bot | None" = None) -> None:
        self.bot = bot
        self.logger = get_logger(f"{type(self).__module__}.{type(self).__qualname__}")


class UpdateDispatcher:
    """
    Routes updates to a handler instance.

    Never raises from route(): handler failures go through handle_error(),
    which subclasses may override. Cancellation is always propagated.

    Args:
        handler: Handler instance
        registry: Prebuilt registry for the handler type (built on demand if omitted)
        error_cooldown: Seconds to pause after a network error inside a handler
    """

    def __init__(
        self,
        handler: Any,
        registry: HandlerRegistry | None = None,
        error_cooldown: float = 2.0,
    ) -> None:
        self.handler = handler
        self.registry = registry if registry is not None else registry_for(type(handler))
        self.error_cooldown = error_cooldown

    def handled_types(self) -> frozenset[UpdateType]:
        """Update types that have a handler method."""
        return self.registry.handled_types

    def allowed_updates(self) -> list[str]:
        """Handled update types as the Bot API ``allowed_updates`` parameter."""
        return sorted(update_type.value for update_type in self.registry.handled_types)

    async def route(self, update: "Update") -> bool:
        """
        Invoke the handler method matching the update type.

        Args:
            update: Incoming update

        Returns:
            True if a handler method was invoked, False if none matched
        """
        update_type = resolve_update_type(update)
        method = self.registry.get(update_type) if update_type is not None else None

        if method is None:
            log_with_source(
                logger,
                "telegram",
                "warning",
                "Update type is not implemented",
                update_type=update_type.value if update_type else None,
                update_id=getattr(update, "update_id", None),
            )
            return False

        payload = getattr(update, update_type.value)
        try:
            result = method(self.handler, payload)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            await self.handle_error(e, update)
        return True

    async def handle_error(self, exception: Exception, update: "Update | None" = None) -> None:
        """
        Report a handler failure and continue.

        Telegram API errors are logged with their status code and method;
        any other exception with its traceback. Network errors additionally
        pause the caller for error_cooldown seconds.
        """
        update_id = getattr(update, "update_id", None)

        if isinstance(exception, TelegramAPIError):
            method = getattr(exception, "method", None)
            log_with_source(
                logger,
                "telegram",
                "error",
                "Telegram API error",
                error_code=API_ERROR_CODES.get(type(exception)),
                error_type=type(exception).__name__,
                api_method=type(method).__name__ if method is not None else None,
                error=exception.message,
                update_id=update_id,
            )
        else:
            log_with_source(
                logger,
                "telegram",
                "error",
                "Update handler failed",
                error_type=type(exception).__name__,
                error=str(exception),
                update_id=update_id,
                exc_info=exception,
            )

        if isinstance(exception, TelegramNetworkError):
            await asyncio.sleep(self.error_cooldown)
