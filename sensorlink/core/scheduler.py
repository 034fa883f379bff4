"""Repeating timer that drives the transmission loop.

Each firing runs the callback as its own task, so a slow send never delays
the next firing and never blocks sensor callbacks. Ticks may overlap.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog

from sensorlink.core.clock import Clock, MonotonicClock

log = structlog.get_logger()


class PeriodicTicker:
    """Fires ``callback`` on start, then every ``interval`` seconds until stopped."""

    def __init__(
        self,
        interval: float,
        callback: Callable[[], Awaitable[None]],
        clock: Clock | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval = interval
        self._callback = callback
        self._clock = clock or MonotonicClock()
        self._task: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()
        self.next_tick_at: float | None = None
        self.ticks_fired: int = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def start(self) -> None:
        if self._task is not None:
            return
        self._fire()
        self.next_tick_at = self._clock.now() + self._interval
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Stop firing. Callbacks already running are left to finish."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.next_tick_at = None

    async def drain(self) -> None:
        """Wait for every in-flight callback to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def _run(self) -> None:
        while True:
            await self._clock.sleep(self.next_tick_at - self._clock.now())
            self._fire()
            self.next_tick_at += self._interval

    def _fire(self) -> None:
        self.ticks_fired += 1
        # The callback is invoked here so its arguments bind at firing time.
        task = asyncio.get_running_loop().create_task(self._guarded(self._callback()))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _guarded(self, pending: Awaitable[None]) -> None:
        try:
            await pending
        except Exception:
            log.error("tick_failed", tick=self.ticks_fired, exc_info=True)
