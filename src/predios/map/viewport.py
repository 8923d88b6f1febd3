"""Viewport Tracker: debounced, deduplicated map settle events."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

from predios.geo.models import Viewport

logger = logging.getLogger(__name__)

ViewportReader = Callable[[], Viewport]
ViewportHandler = Callable[[Viewport], "Awaitable[Any] | Any"]


class ViewportTracker:
    """Observes map move/zoom settle events and emits the viewport after a quiet period.

    Only settle events are fed in, never drag deltas. Each settle replaces
    any pending emission (debounce, not throttle), so a burst produces one
    call carrying the viewport read when the timer fires. Emissions equal
    to the last one are skipped unless :meth:`invalidate` was called.

    Args:
        read_viewport: Returns the map's current bounding box and zoom.
        on_change: Called with the viewport; may be a coroutine function,
            in which case it runs as a tracked background task.
        debounce_ms: Quiet period in milliseconds.
        deduplicate: Skip emissions identical to the previous one.
    """

    def __init__(
        self,
        read_viewport: ViewportReader,
        on_change: ViewportHandler,
        debounce_ms: int = 300,
        deduplicate: bool = True,
    ) -> None:
        self._read_viewport = read_viewport
        self._on_change = on_change
        self._delay = debounce_ms / 1000
        self._deduplicate = deduplicate
        self._handle: asyncio.TimerHandle | None = None
        self._mounted = False
        self._last: Viewport | None = None
        self._tasks: set[asyncio.Task] = set()
        self.emitted = 0

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def last_viewport(self) -> Viewport | None:
        return self._last

    def mount(self) -> None:
        """Attach to the map; schedules the first emission to seed the initial fetch."""
        self._mounted = True
        self.settle()

    def settle(self) -> None:
        """Record a move/zoom settle event, restarting the quiet period."""
        if not self._mounted:
            return
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def invalidate(self) -> None:
        """Forget the last emitted viewport so the next settle always emits."""
        self._last = None

    def teardown(self) -> None:
        """Detach from the map and discard any pending emission."""
        self._mounted = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def drain(self) -> None:
        """Wait for handler tasks started by earlier emissions."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _fire(self) -> None:
        self._handle = None
        if not self._mounted:
            return
        viewport = self._read_viewport()
        if self._deduplicate and viewport == self._last:
            logger.debug("Viewport unchanged, skipping emission")
            return
        self._last = viewport
        self.emitted += 1

        result = self._on_change(viewport)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Viewport handler failed", exc_info=task.exception())
