"""In-process storage implementation of SensorStore. Lost on restart."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sensorlink.core.models import (
    LogStatistics,
    StoredSample,
    TransmissionLogRecord,
    utc_now,
)

if TYPE_CHECKING:
    from sensorlink.core.validation import LogFields, SampleFields


class MemorySensorStore:
    """SensorStore backed by plain dicts."""

    def __init__(self) -> None:
        self._samples: dict[int, StoredSample] = {}
        self._logs: dict[int, TransmissionLogRecord] = {}
        self._next_sample_id = 1
        self._next_log_id = 1

    async def create_sample(self, fields: SampleFields) -> StoredSample:
        sample = StoredSample(
            id=self._next_sample_id,
            latitude=fields.latitude,
            longitude=fields.longitude,
            accuracy=fields.accuracy,
            accel_x=fields.accel_x,
            accel_y=fields.accel_y,
            accel_z=fields.accel_z,
            timestamp=utc_now(),
        )
        self._samples[sample.id] = sample
        self._next_sample_id += 1
        return sample

    async def recent_samples(self, limit: int) -> list[StoredSample]:
        # Newest first; id breaks ties between samples stored in the same instant.
        ordered = sorted(self._samples.values(), key=lambda s: (s.timestamp, s.id), reverse=True)
        return ordered[:limit]

    async def create_log(self, fields: LogFields) -> TransmissionLogRecord:
        record = TransmissionLogRecord(
            id=self._next_log_id,
            target_address=fields.target_address,
            success=fields.success,
            error_message=fields.error_message,
            sample_id=fields.sample_id,
            timestamp=utc_now(),
        )
        self._logs[record.id] = record
        self._next_log_id += 1
        return record

    async def transmission_stats(self) -> LogStatistics:
        return compute_log_statistics(self._logs.values())


def compute_log_statistics(logs) -> LogStatistics:
    total = 0
    successful = 0
    last = None
    for record in logs:
        total += 1
        if record.success:
            successful += 1
        if last is None or record.timestamp > last:
            last = record.timestamp
    return LogStatistics(total=total, successful=successful, last_transmission=last)
