"""
Cancellable one-shot timer for coroutine callbacks.

The orchestrator's debounce is built on this: every trigger calls
`schedule()`, which replaces any not-yet-fired timer. Once a timer fires its
callback runs as a task of its own, so later `schedule()`/`cancel()` calls
never interrupt a callback that is already running.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


class CancellableTimer:
    """Explicit schedule/cancel timer bound to the running event loop."""

    def __init__(self, callback: Callable[[], Awaitable[None]], name: str = "timer"):
        self._callback = callback
        self._name = name
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a scheduled fire has not happened yet."""
        return self._handle is not None

    @property
    def running(self) -> bool:
        """True while at least one fired callback is still executing."""
        return bool(self._tasks)

    def schedule(self, delay_ms: int) -> None:
        """(Re)start the timer; a previously scheduled fire is dropped."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(delay_ms, 0) / 1000, self._fire)

    def cancel(self) -> None:
        """Drop the scheduled fire, if any. Running callbacks are left alone."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def join(self) -> None:
        """Wait until nothing is scheduled and no callback is running."""
        loop = asyncio.get_running_loop()
        while self._handle is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            elif self._handle is not None:
                await asyncio.sleep(max(self._handle.when() - loop.time(), 0))
                # call_later may fire a hair after when(); yield until it does
                await asyncio.sleep(0)

    async def aclose(self) -> None:
        """Cancel the scheduled fire and any running callbacks."""
        self.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _fire(self) -> None:
        self._handle = None
        task = asyncio.ensure_future(self._callback())
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"❌ {self._name} callback failed: {error}")
