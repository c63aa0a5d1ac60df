# src/cache/eviction.py - v1
"""Idle-driven eviction timer.

Every ``interval_s`` seconds the timer clears a non-empty cache. When the
cache has been empty for more than ``idle_threshold`` consecutive ticks the
timer stops itself; the next cache operation starts it again via touch().
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class EvictionTimer:
    """Periodic cache clearing owned by one cache instance."""

    def __init__(
        self,
        evict: Callable[[], None],
        is_empty: Callable[[], bool],
        interval_s: float = 60.0,
        idle_threshold: int = 3,
        enabled: bool = True,
    ) -> None:
        """Initialize the timer (no task is started until touch()).

        Args:
            evict: Clears the cache.
            is_empty: True when there is nothing to clear.
            interval_s: Seconds between ticks.
            idle_threshold: Idle ticks tolerated before the timer stops.
            enabled: When False, touch() never schedules anything.
        """
        self._evict = evict
        self._is_empty = is_empty
        self._interval_s = interval_s
        self._idle_threshold = idle_threshold
        self._enabled = enabled
        self._task: asyncio.Task[None] | None = None
        self.idle_ticks = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def touch(self) -> None:
        """Reset the idle streak and restart the period from now.

        Outside a running event loop there is nothing to schedule on, so
        the call is ignored.
        """
        if not self._enabled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        was_running = self.is_running
        self._cancel()
        self.idle_ticks = 0
        self._task = loop.create_task(self._run(), name="firecache-eviction")
        if not was_running:
            logger.debug("Eviction timer started (every %.1fs)", self._interval_s)

    def tick(self) -> bool:
        """Run one timer step. Returns False once the timer goes dormant."""
        if self.idle_ticks > self._idle_threshold:
            logger.debug(
                "Eviction timer stopped after %d idle ticks", self.idle_ticks
            )
            return False

        if self._is_empty():
            self.idle_ticks += 1
            return True

        self.idle_ticks = 0
        self._evict()
        return True

    def stop(self) -> None:
        self._cancel()
        self._task = None

    async def aclose(self) -> None:
        """Stop the timer and wait for its task to finish."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_s)
            if not self.tick():
                return

    def _cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
