"""Repeating timers on the asyncio event loop.

Mirrors the timeout-source style of GUI toolkits: the tick callback returns
True to run again after another interval and False to stop.
"""
import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[], bool]


class RepeatingTask:
    """Handle for a callback that runs every `interval_ms` until stopped."""

    def __init__(
        self,
        interval_ms: int,
        on_tick: TickCallback,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._interval = max(0, int(interval_ms)) / 1000.0
        self._on_tick = on_tick
        self._loop = loop or asyncio.get_running_loop()
        self._cancelled = False
        self._handle: Optional[asyncio.TimerHandle] = self._loop.call_later(self._interval, self._run)

    @property
    def active(self) -> bool:
        return self._handle is not None and not self._cancelled

    def _run(self) -> None:
        self._handle = None
        if self._cancelled:
            return
        if self._on_tick() and not self._cancelled:
            self._handle = self._loop.call_later(self._interval, self._run)

    def cancel(self) -> None:
        """Stop future ticks. Safe to call more than once."""
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


def schedule(interval_ms: int, on_tick: TickCallback) -> RepeatingTask:
    """Run `on_tick` every `interval_ms` on the running loop."""
    return RepeatingTask(interval_ms, on_tick)
