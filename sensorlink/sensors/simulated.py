"""Simulated location and motion adapters.

Used where no platform sensor API exists (desktop runs of the transmitter,
bench testing a microcontroller). The location adapter random-walks a device
around a start point; the motion adapter emits gravity-dominated readings
with a little noise.
"""

from __future__ import annotations

import asyncio
import math
import random
import time
from typing import Callable

import structlog

from sensorlink.core.errors import SensorLinkError, SensorTimeout
from sensorlink.core.models import LocationReading, MotionReading
from sensorlink.sensors.base import (
    INITIAL_CHECK_OPTIONS,
    TRACKING_OPTIONS,
    LocationOptions,
    PermissionOutcome,
    Subscription,
)

log = structlog.get_logger()

GRAVITY = 9.81


def _spawn(coro) -> asyncio.Task:
    return asyncio.get_running_loop().create_task(coro)


class SimulatedLocationAdapter:
    """Random-walk GPS source."""

    def __init__(
        self,
        lat: float = 45.764,
        lon: float = 4.835,
        *,
        grant: bool = True,
        available: bool = True,
        fix_latency: float = 0.05,
        update_interval: float = 1.0,
        speed_mps: float = 1.4,
        tracking_options: LocationOptions = TRACKING_OPTIONS,
        initial_options: LocationOptions = INITIAL_CHECK_OPTIONS,
        rng: random.Random | None = None,
    ) -> None:
        self.lat = lat
        self.lon = lon
        self.bearing = 0.0
        self.speed_mps = speed_mps
        self._grant = grant
        self._available = available
        self._fix_latency = fix_latency
        self._update_interval = update_interval
        self._tracking_options = tracking_options
        self._initial_options = initial_options
        self._rng = rng or random.Random()
        self._cached: LocationReading | None = None
        self._cached_at: float | None = None

    def _move(self, dt_seconds: float) -> None:
        """Walk along the current bearing, with random turns."""
        self.bearing = (self.bearing + self._rng.uniform(-15, 15)) % 360
        distance_m = self.speed_mps * dt_seconds
        bearing_rad = math.radians(self.bearing)

        # Approximate: 1 degree latitude ≈ 111,000 m
        self.lat += (distance_m * math.cos(bearing_rad)) / 111_000
        self.lon += (distance_m * math.sin(bearing_rad)) / (111_000 * math.cos(math.radians(self.lat)))

    async def _acquire(self) -> LocationReading:
        await asyncio.sleep(self._fix_latency)
        accuracy_range = (3, 15) if self._tracking_options.high_accuracy else (20, 80)
        return LocationReading(
            latitude=self.lat,
            longitude=self.lon,
            accuracy=float(self._rng.randint(*accuracy_range)),
        )

    async def get_fix(self, options: LocationOptions) -> LocationReading:
        """Return a cached fix younger than ``maximum_age_seconds``, else acquire one."""
        now = time.monotonic()
        if self._cached is not None and self._cached_at is not None:
            if now - self._cached_at <= options.maximum_age_seconds:
                return self._cached
        try:
            reading = await asyncio.wait_for(self._acquire(), timeout=options.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise SensorTimeout(f"no fix within {options.timeout_seconds}s") from exc
        self._cached, self._cached_at = reading, time.monotonic()
        return reading

    async def request_permission(self) -> PermissionOutcome:
        if not self._available:
            return PermissionOutcome.UNAVAILABLE
        if not self._grant:
            return PermissionOutcome.DENIED
        await self.get_fix(self._initial_options)
        return PermissionOutcome.GRANTED

    def subscribe(
        self,
        on_reading: Callable[[LocationReading], None],
        on_error: Callable[[SensorLinkError], None],
    ) -> Subscription:
        async def watch() -> None:
            while True:
                try:
                    on_reading(await self.get_fix(self._tracking_options))
                except SensorLinkError as exc:
                    on_error(exc)
                await asyncio.sleep(self._update_interval)
                self._move(self._update_interval)

        task = _spawn(watch())
        log.debug("location_watch_started")
        return Subscription(task.cancel)


class SimulatedMotionAdapter:
    """Accelerometer source reporting acceleration including gravity.

    ``explicit_grant`` mimics platforms that prompt the user before motion
    events flow; other platforms grant motion implicitly.
    """

    def __init__(
        self,
        *,
        available: bool = True,
        explicit_grant: bool = False,
        user_grants: bool = True,
        update_interval: float = 0.1,
        noise: float = 0.3,
        missing_axes: tuple[str, ...] = (),
        rng: random.Random | None = None,
    ) -> None:
        self._available = available
        self._explicit_grant = explicit_grant
        self._user_grants = user_grants
        self._update_interval = update_interval
        self._noise = noise
        self._missing_axes = set(missing_axes)
        self._rng = rng or random.Random()

    async def request_permission(self) -> PermissionOutcome:
        if not self._available:
            return PermissionOutcome.UNAVAILABLE
        if not self._explicit_grant:
            return PermissionOutcome.GRANTED
        return PermissionOutcome.GRANTED if self._user_grants else PermissionOutcome.DENIED

    def read(self) -> MotionReading:
        axes = {
            "x": self._rng.gauss(0.0, self._noise),
            "y": self._rng.gauss(0.0, self._noise),
            "z": GRAVITY + self._rng.gauss(0.0, self._noise),
        }
        for axis in self._missing_axes:
            axes[axis] = None
        return MotionReading.from_axes(axes["x"], axes["y"], axes["z"])

    def subscribe(
        self,
        on_reading: Callable[[MotionReading], None],
        on_error: Callable[[SensorLinkError], None],
    ) -> Subscription:
        async def listen() -> None:
            while True:
                on_reading(self.read())
                await asyncio.sleep(self._update_interval)

        task = _spawn(listen())
        log.debug("motion_listener_started")
        return Subscription(task.cancel)
