"""Sensor source: permission state, latest readings, and tracking handles.

Permission failures never raise out of this class. They are recorded per
capability in ``errors`` and reflected in ``permissions``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from sensorlink.core.errors import (
    PermissionDenied,
    PermissionUnavailable,
    SensorLinkError,
    SensorTimeout,
)
from sensorlink.core.models import PermissionState, SensorSample
from sensorlink.sensors.base import PermissionOutcome

if TYPE_CHECKING:
    from sensorlink.core.models import LocationReading, MotionReading
    from sensorlink.sensors.base import LocationAdapter, MotionAdapter, Subscription

log = structlog.get_logger()

LOCATION = "location"
MOTION = "motion"


def location_error_message(error: Exception) -> str:
    if isinstance(error, PermissionDenied):
        return "Location access denied"
    if isinstance(error, PermissionUnavailable):
        return "Location unavailable"
    if isinstance(error, SensorTimeout):
        return "Location request timeout"
    return "Unknown location error"


class SensorSource:
    """Latest location and motion readings plus per-capability permission state."""

    def __init__(self, location: LocationAdapter | None, motion: MotionAdapter | None) -> None:
        self._location_adapter = location
        self._motion_adapter = motion
        self.permissions: dict[str, PermissionState] = {
            LOCATION: PermissionState.UNKNOWN,
            MOTION: PermissionState.UNKNOWN,
        }
        self.errors: dict[str, str] = {}
        self.location: LocationReading | None = None
        self.motion: MotionReading | None = None

    def _grant(self, capability: str) -> None:
        self.permissions[capability] = PermissionState.GRANTED
        self.errors.pop(capability, None)

    def _deny(self, capability: str, reason: str) -> None:
        self.permissions[capability] = PermissionState.DENIED
        self.errors[capability] = reason
        log.warning("sensor_permission_failed", capability=capability, reason=reason)

    @property
    def all_granted(self) -> bool:
        return all(state is PermissionState.GRANTED for state in self.permissions.values())

    async def request_location_permission(self) -> PermissionState:
        if self._location_adapter is None:
            self._deny(LOCATION, "Geolocation not supported")
            return self.permissions[LOCATION]
        try:
            outcome = await self._location_adapter.request_permission()
        except Exception as exc:
            self._deny(LOCATION, location_error_message(exc))
            return self.permissions[LOCATION]

        if outcome is PermissionOutcome.GRANTED:
            self._grant(LOCATION)
        elif outcome is PermissionOutcome.UNAVAILABLE:
            self._deny(LOCATION, "Location unavailable")
        else:
            self._deny(LOCATION, "Location access denied")
        return self.permissions[LOCATION]

    async def request_motion_permission(self) -> PermissionState:
        if self._motion_adapter is None:
            self._deny(MOTION, "Device motion not supported")
            return self.permissions[MOTION]
        try:
            outcome = await self._motion_adapter.request_permission()
        except Exception:
            log.debug("motion_permission_request_raised", exc_info=True)
            self._deny(MOTION, "Failed to request motion permission")
            return self.permissions[MOTION]

        if outcome is PermissionOutcome.GRANTED:
            self._grant(MOTION)
        elif outcome is PermissionOutcome.UNAVAILABLE:
            self._deny(MOTION, "Device motion not supported")
        else:
            self._deny(MOTION, "Motion permission denied")
        return self.permissions[MOTION]

    def start_location_tracking(self) -> Subscription | None:
        """Start continuous location updates. Returns None unless permission is granted."""
        if self.permissions[LOCATION] is not PermissionState.GRANTED or self._location_adapter is None:
            return None
        return self._location_adapter.subscribe(self._on_location, self._on_location_error)

    def start_motion_tracking(self) -> Subscription | None:
        """Start continuous motion updates. Returns None unless permission is granted."""
        if self.permissions[MOTION] is not PermissionState.GRANTED or self._motion_adapter is None:
            return None
        return self._motion_adapter.subscribe(self._on_motion, self._on_motion_error)

    def _on_location(self, reading: LocationReading) -> None:
        self.location = reading

    def _on_location_error(self, error: SensorLinkError) -> None:
        self.errors[LOCATION] = location_error_message(error)
        log.warning("location_update_failed", reason=self.errors[LOCATION])

    def _on_motion(self, reading: MotionReading) -> None:
        self.motion = reading

    def _on_motion_error(self, error: SensorLinkError) -> None:
        self.errors[MOTION] = str(error) or "Motion update failed"
        log.warning("motion_update_failed", reason=self.errors[MOTION])

    def latest_sample(self) -> SensorSample | None:
        """Combine the latest readings, or None if either is missing."""
        if self.location is None or self.motion is None:
            return None
        return SensorSample.combine(self.location, self.motion)
