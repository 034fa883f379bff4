"""Transmission loop — periodic sample, send, and log.

This is the core client-side logic. It depends on the sensor source, the
device client and the persistence client through their interfaces only, and
on a Clock so it can be stepped in tests.

All mutation of connection state, statistics and status happens here, on the
event loop thread. Each tick runs as its own task; a tick that completes after
the loop was stopped (or restarted) leaves state untouched.
"""

from __future__ import annotations

from typing import Callable, Protocol, TYPE_CHECKING

import structlog

from sensorlink.core.clock import Clock, MonotonicClock
from sensorlink.core.models import (
    ConnectionState,
    LoopState,
    PermissionState,
    SendResult,
    StatusMessage,
    TransmissionOutcome,
    TransmissionStatistics,
    utc_now,
)
from sensorlink.core.scheduler import PeriodicTicker
from sensorlink.sensors.source import LOCATION, MOTION, SensorSource

if TYPE_CHECKING:
    from datetime import datetime

    from sensorlink.client.persistence import PersistenceClient
    from sensorlink.core.models import SensorSample
    from sensorlink.sensors.base import Subscription

log = structlog.get_logger()

DEFAULT_INTERVAL = 2.0
PERMISSIONS_REQUIRED = "Sensor permissions required"


class Transmitter(Protocol):
    async def send(self, sample: SensorSample, target_address: str) -> SendResult: ...


class TransmissionLoop:
    """Drives periodic delivery of sensor samples to one target address."""

    def __init__(
        self,
        sensors: SensorSource,
        client: Transmitter,
        target_address: str,
        persistence: PersistenceClient | None = None,
        interval: float = DEFAULT_INTERVAL,
        clock: Clock | None = None,
    ) -> None:
        self._sensors = sensors
        self._client = client
        self._persistence = persistence
        self._clock = clock or MonotonicClock()
        self._ticker = PeriodicTicker(interval, self._scheduled_tick, self._clock)
        self._subscriptions: list[Subscription] = []
        self._session = 0
        self._listeners: list[Callable[[TransmissionLoop], None]] = []

        self.target_address = target_address
        self.state = LoopState.IDLE
        self.connection_state = ConnectionState.DISCONNECTED
        self.statistics = TransmissionStatistics()
        self.last_attempt_at: datetime | None = None
        self.last_success_at: datetime | None = None
        self.status: StatusMessage | None = None

    # -- observers ------------------------------------------------------------

    def add_listener(self, callback: Callable[[TransmissionLoop], None]) -> None:
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception:
                log.error("listener_failed", exc_info=True)

    def _set_status(self, kind: str, text: str) -> None:
        self.status = StatusMessage(kind=kind, text=text)

    # -- state transitions ----------------------------------------------------

    @property
    def running(self) -> bool:
        return self.state is LoopState.RUNNING

    @property
    def next_attempt_at(self) -> float | None:
        """Clock time of the next scheduled tick, None while idle."""
        return self._ticker.next_tick_at if self.running else None

    def seconds_until_next_attempt(self) -> float | None:
        if self.next_attempt_at is None:
            return None
        return max(0.0, self.next_attempt_at - self._clock.now())

    async def start(self) -> bool:
        """Go idle → running. Returns False if sensor permissions are missing."""
        if self.running:
            return True

        permissions = self._sensors.permissions
        if permissions[LOCATION] is not PermissionState.GRANTED:
            await self._sensors.request_location_permission()
        if permissions[MOTION] is not PermissionState.GRANTED:
            await self._sensors.request_motion_permission()

        if not self._sensors.all_granted:
            self._set_status("error", PERMISSIONS_REQUIRED)
            log.warning("transmission_start_refused",
                        permissions={k: v.value for k, v in permissions.items()},
                        errors=dict(self._sensors.errors))
            self._notify()
            return False

        self._session += 1
        self.state = LoopState.RUNNING
        for subscription in (self._sensors.start_location_tracking(),
                             self._sensors.start_motion_tracking()):
            if subscription is not None:
                self._subscriptions.append(subscription)
        self._ticker.start()

        self._set_status("success", "Transmission started")
        log.info("transmission_started", target=self.target_address,
                 interval=self._ticker.interval)
        self._notify()
        return True

    def stop(self) -> None:
        """Go running → idle. Synchronous; nothing fires after it returns."""
        self._ticker.stop()
        while self._subscriptions:
            self._subscriptions.pop().cancel()

        was_running = self.running
        self._session += 1
        self.state = LoopState.IDLE
        self.connection_state = ConnectionState.DISCONNECTED
        if was_running:
            self._set_status("success", "Transmission stopped")
            log.info("transmission_stopped", target=self.target_address,
                     **self.statistics.to_dict())
        self._notify()

    async def drain(self) -> None:
        """Wait for in-flight ticks (including their persistence calls)."""
        await self._ticker.drain()

    # -- tick -----------------------------------------------------------------

    def _scheduled_tick(self):
        return self.tick(session=self._session)

    async def tick(self, session: int | None = None) -> None:
        """One scheduled attempt: sample, send, account, log.

        ``session`` is the run the tick was scheduled in; a tick whose run has
        already ended does nothing.
        """
        if session is None:
            session = self._session
        if not self.running or session != self._session:
            return
        sample = self._sensors.latest_sample()
        if sample is None:
            return

        target_address = self.target_address
        self.connection_state = ConnectionState.CONNECTING
        self._notify()

        try:
            result = await self._client.send(sample, target_address)
        except Exception:
            log.error("send_raised", target=target_address, exc_info=True)
            result = SendResult(success=False, error="Network error occurred")
        outcome = TransmissionOutcome(
            target_address=target_address,
            success=result.success,
            error_message=result.error,
        )

        if session == self._session and self.running:
            self._apply(outcome)
        else:
            log.info("stale_result_discarded", target=target_address, success=outcome.success)

        await self._persist(sample, outcome)

    def _apply(self, outcome: TransmissionOutcome) -> None:
        self.statistics = self.statistics.record(outcome.success)
        self.last_attempt_at = outcome.occurred_at
        if outcome.success:
            self.connection_state = ConnectionState.CONNECTED
            self.last_success_at = outcome.occurred_at
            self._set_status("success", "Data transmitted successfully")
            log.debug("transmission_succeeded", target=outcome.target_address,
                      **self.statistics.to_dict())
        else:
            self.connection_state = ConnectionState.DISCONNECTED
            self._set_status("error", outcome.error_message or "Failed to transmit data")
            log.info("transmission_failed", target=outcome.target_address,
                     error=outcome.error_message, **self.statistics.to_dict())
        self._notify()

    async def _persist(self, sample: SensorSample, outcome: TransmissionOutcome) -> None:
        """Best-effort logging. Failures never reach the loop."""
        if self._persistence is None:
            return
        try:
            stored = await self._persistence.record_sample(sample)
            await self._persistence.record_outcome(outcome, sample_id=stored.get("id"))
        except Exception as exc:
            log.warning("persistence_failed", target=outcome.target_address, error=str(exc))

    # -- observer view --------------------------------------------------------

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "target_address": self.target_address,
            "connection_state": self.connection_state.value,
            "statistics": self.statistics.to_dict(),
            "last_attempt_at": self.last_attempt_at.isoformat() if self.last_attempt_at else None,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
            "seconds_until_next_attempt": self.seconds_until_next_attempt(),
            "status": {"kind": self.status.kind, "text": self.status.text} if self.status else None,
            "permissions": {k: v.value for k, v in self._sensors.permissions.items()},
            "sensor_errors": dict(self._sensors.errors),
            "generated_at": utc_now().isoformat(),
        }
