"""SensorLink — core internal data models.

These are plain dataclasses with no framework dependencies.
JSON bodies are converted to/from these at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PermissionState(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"
    UNKNOWN = "unknown"


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass(frozen=True)
class LocationReading:
    latitude: float
    longitude: float
    accuracy: float | None = None
    captured_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class MotionReading:
    """Acceleration including gravity, in m/s²."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    captured_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_axes(
        cls,
        x: float | None,
        y: float | None,
        z: float | None,
        captured_at: datetime | None = None,
    ) -> MotionReading:
        """Build a reading from platform axes, any of which may be missing."""
        return cls(
            x=x or 0.0,
            y=y or 0.0,
            z=z or 0.0,
            captured_at=captured_at or utc_now(),
        )


@dataclass(frozen=True)
class SensorSample:
    latitude: float
    longitude: float
    accuracy: float | None
    accel_x: float
    accel_y: float
    accel_z: float
    captured_at: datetime = field(default_factory=utc_now)

    @classmethod
    def combine(cls, location: LocationReading, motion: MotionReading) -> SensorSample:
        return cls(
            latitude=location.latitude,
            longitude=location.longitude,
            accuracy=location.accuracy,
            accel_x=motion.x,
            accel_y=motion.y,
            accel_z=motion.z,
            captured_at=utc_now(),
        )

    @property
    def timestamp_ms(self) -> int:
        return int(self.captured_at.timestamp() * 1000)

    def to_device_payload(self) -> dict:
        """JSON body understood by the microcontroller firmware."""
        return {
            "gps": {
                "latitude": self.latitude,
                "longitude": self.longitude,
                "accuracy": self.accuracy,
            },
            "accelerometer": {
                "x": self.accel_x,
                "y": self.accel_y,
                "z": self.accel_z,
            },
            "timestamp": self.timestamp_ms,
        }

    def to_record(self) -> dict:
        """Flat body for the persistence API."""
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "accel_x": self.accel_x,
            "accel_y": self.accel_y,
            "accel_z": self.accel_z,
        }


@dataclass(frozen=True)
class SendResult:
    success: bool
    error: str | None = None
    error_kind: str | None = None  # name of the error class that caused the failure
    via_relay: bool = False


@dataclass(frozen=True)
class TransmissionOutcome:
    target_address: str
    success: bool
    error_message: str | None = None
    occurred_at: datetime = field(default_factory=utc_now)

    def to_record(self, sample_id: int | None = None) -> dict:
        record = {
            "target_address": self.target_address,
            "success": self.success,
            "error_message": self.error_message,
        }
        if sample_id is not None:
            record["sample_id"] = sample_id
        return record


@dataclass(frozen=True)
class TransmissionStatistics:
    """Session counters. ``success_rate`` is a percentage in [0, 100]."""
    total: int = 0
    successful: int = 0

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.successful / self.total * 100

    def record(self, success: bool) -> TransmissionStatistics:
        return TransmissionStatistics(
            total=self.total + 1,
            successful=self.successful + (1 if success else 0),
        )

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "successful": self.successful,
            "success_rate": round(self.success_rate, 2),
        }


@dataclass(frozen=True)
class StatusMessage:
    kind: str  # "success" or "error"
    text: str
    created_at: datetime = field(default_factory=utc_now)


# Server-side records


@dataclass
class StoredSample:
    id: int
    latitude: float
    longitude: float
    accuracy: float | None
    accel_x: float
    accel_y: float
    accel_z: float
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "accel_x": self.accel_x,
            "accel_y": self.accel_y,
            "accel_z": self.accel_z,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class TransmissionLogRecord:
    id: int
    target_address: str
    success: bool
    error_message: str | None
    timestamp: datetime
    sample_id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "target_address": self.target_address,
            "sample_id": self.sample_id,
            "success": self.success,
            "error_message": self.error_message,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class LogStatistics:
    """Aggregate computed from every stored transmission log."""
    total: int
    successful: int
    last_transmission: datetime | None = None

    @property
    def success_rate(self) -> float:
        return self.successful / self.total * 100 if self.total > 0 else 0.0

    def to_dict(self) -> dict:
        result = {
            "total": self.total,
            "successful": self.successful,
            "success_rate": self.success_rate,
        }
        if self.last_transmission is not None:
            result["last_transmission"] = self.last_transmission.isoformat()
        return result
