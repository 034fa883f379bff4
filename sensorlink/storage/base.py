"""Storage interface (port) for samples and transmission logs."""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from sensorlink.core.models import (
        LogStatistics,
        StoredSample,
        TransmissionLogRecord,
    )
    from sensorlink.core.validation import LogFields, SampleFields


class SensorStore(Protocol):
    """Port: persists raw samples and transmission outcomes."""

    async def create_sample(self, fields: SampleFields) -> StoredSample: ...

    async def recent_samples(self, limit: int) -> list[StoredSample]: ...

    async def create_log(self, fields: LogFields) -> TransmissionLogRecord: ...

    async def transmission_stats(self) -> LogStatistics: ...
