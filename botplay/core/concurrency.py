"""
Concurrency Infrastructure.

Task handles for the long-running background loops (webhook refresh,
polling). Each loop receives an explicit stop signal instead of relying on
host-framework service conventions, and waits between cycles with
wait_for_stop() so it wakes immediately when asked to stop.

Usage:
    from botplay.core.concurrency import BackgroundTask, wait_for_stop

    async def loop(stop_event: asyncio.Event) -> None:
        while True:
            await do_work()
            if await wait_for_stop(stop_event, 60):
                break

    task = BackgroundTask("refresh")
    task.start(loop)
    ...
    await task.stop()
"""

import asyncio
from collections.abc import Awaitable, Callable

from botplay.core.exceptions import LifecycleError
from botplay.core.logging import get_logger

logger = get_logger(__name__)

LoopFactory = Callable[[asyncio.Event], Awaitable[None]]


async def wait_for_stop(stop_event: asyncio.Event, timeout: float) -> bool:
    """
    Sleep until the timeout elapses or the stop signal fires.

    Args:
        stop_event: Stop signal shared with the controlling task handle
        timeout: Maximum number of seconds to wait

    Returns:
        True if the stop signal fired, False if the timeout elapsed
    """
    if stop_event.is_set():
        return True
    try:
        async with asyncio.timeout(timeout):
            await stop_event.wait()
    except TimeoutError:
        return False
    return True


class BackgroundTask:
    """
    Handle for one background loop and its stop signal.

    Stopped until start() is called, Running until stop() completes.
    start() while running and stop() while stopped raise LifecycleError.
    Calls are not locked internally; callers must not race them.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def is_running(self) -> bool:
        """Whether the loop has been started and not yet stopped."""
        return self._task is not None

    def start(self, loop_factory: LoopFactory) -> None:
        """
        Spawn the loop on the running event loop.

        Args:
            loop_factory: Coroutine function taking the stop signal

        Raises:
            LifecycleError: If the loop is already running
        """
        if self._task is not None:
            raise LifecycleError(f"{self.name} is already running.")

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(loop_factory(self._stop_event), name=self.name)
        logger.debug("Background task started", extra={"task": self.name})

    async def stop(self) -> None:
        """
        Signal the loop to stop and wait until it has exited.

        Raises:
            LifecycleError: If the loop is not running
        """
        if self._task is None or self._stop_event is None:
            raise LifecycleError(f"{self.name} is already stopped.")

        task, stop_event = self._task, self._stop_event
        self._task = None
        self._stop_event = None

        stop_event.set()
        await task
        logger.debug("Background task stopped", extra={"task": self.name})
