"""Sensor capability interface (port).

Every platform capability (location, motion) is reached through one adapter
with the same shape: a permission request with a tri-state answer, and a
subscription that hands back an owned, cancellable handle. Platform quirks,
such as explicit motion grants versus an assumed grant, stay inside adapters.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Protocol, TypeVar, TYPE_CHECKING

if TYPE_CHECKING:
    from sensorlink.core.errors import SensorLinkError
    from sensorlink.core.models import LocationReading, MotionReading

R = TypeVar("R")


class PermissionOutcome(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class LocationOptions:
    high_accuracy: bool = True
    timeout_seconds: float = 10.0
    maximum_age_seconds: float = 5.0


# The initial permission check accepts an older cached fix than tracking does.
TRACKING_OPTIONS = LocationOptions(maximum_age_seconds=5.0)
INITIAL_CHECK_OPTIONS = LocationOptions(maximum_age_seconds=60.0)


class Subscription:
    """Handle for a running sensor stream. ``cancel`` is idempotent."""

    def __init__(self, on_cancel: Callable[[], None]) -> None:
        self._on_cancel: Callable[[], None] | None = on_cancel

    @property
    def active(self) -> bool:
        return self._on_cancel is not None

    def cancel(self) -> None:
        on_cancel, self._on_cancel = self._on_cancel, None
        if on_cancel is not None:
            on_cancel()


class CapabilityAdapter(Protocol, Generic[R]):
    """Port: one platform sensor capability."""

    async def request_permission(self) -> PermissionOutcome: ...

    def subscribe(
        self,
        on_reading: Callable[[R], None],
        on_error: Callable[[SensorLinkError], None],
    ) -> Subscription: ...


class LocationAdapter(CapabilityAdapter["LocationReading"], Protocol):
    pass


class MotionAdapter(CapabilityAdapter["MotionReading"], Protocol):
    pass
