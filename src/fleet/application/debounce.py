from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

DebouncedCallback = Callable[..., Awaitable[None]]


class DebounceTimer:
    """
    Cancellable one-shot timer for an async callback.

    ``schedule`` (re)starts the window and replaces any pending arguments;
    only the last scheduled call runs. Once the callback has started it is
    no longer cancellable through the timer: late results are the caller's
    concern.
    """

    def __init__(self, delay: float, callback: DebouncedCallback) -> None:
        self._delay = delay
        self._callback = callback
        self._waiter: asyncio.Task[None] | None = None
        self._pending_args: tuple[Any, ...] = ()
        self._running: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        return self._waiter is not None

    @property
    def busy(self) -> bool:
        """A callback has started and not yet finished."""
        return bool(self._running)

    def schedule(self, *args: Any) -> None:
        self.cancel()
        self._pending_args = args
        self._waiter = asyncio.get_running_loop().create_task(self._wait_then_fire())

    def cancel(self) -> None:
        if self._waiter is not None:
            self._waiter.cancel()
            self._waiter = None
        self._pending_args = ()

    def fire(self) -> asyncio.Task[None] | None:
        """Run the pending callback now instead of waiting out the window."""
        if self._waiter is None:
            return None
        args = self._pending_args
        self.cancel()
        return self._start(args)

    async def drain(self) -> None:
        """Wait for every callback that has already started."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    async def _wait_then_fire(self) -> None:
        await asyncio.sleep(self._delay)
        args = self._pending_args
        self._waiter = None
        self._pending_args = ()
        self._start(args)

    def _start(self, args: tuple[Any, ...]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(self._callback(*args))
        self._running.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task[None]) -> None:
        self._running.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Debounced callback failed", exc_info=task.exception())
