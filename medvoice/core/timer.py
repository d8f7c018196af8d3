"""Call duration timer.

A cancelable one-second counter owned by the call state machine. It only
runs while the call is Active; every exit path cancels it and resets the count.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from typing import Any

from medvoice.logging_config import get_logger

logger: Any = get_logger(__name__)


class DurationTimer:
    """Counts whole elapsed intervals on the running event loop."""

    def __init__(
        self,
        interval: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("Timer interval must be positive")
        self._interval = interval
        self._on_tick = on_tick
        self._seconds = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def seconds(self) -> int:
        """Whole intervals elapsed since ``start``."""
        return self._seconds

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start counting from zero. Must be called from a running loop."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        """Stop counting and reset to zero. Safe to call when not running."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._seconds = 0

    async def aclose(self) -> None:
        """Cancel and wait for the ticking task to finish unwinding."""
        task = self._task
        self.cancel()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        ticks = 0
        while True:
            ticks += 1
            # Schedule against the start time so ticks don't drift
            delay = started + ticks * self._interval - loop.time()
            await asyncio.sleep(max(0.0, delay))
            self._seconds = ticks
            if self._on_tick is not None:
                try:
                    self._on_tick(ticks)
                except Exception as e:
                    logger.error(f"Timer tick callback failed: {e}")
