"""File-based storage implementation.

Stores records as JSON Lines, one file per record kind per UTC day:

    base_dir/YYYY/MM/DD/samples.jsonl
    base_dir/YYYY/MM/DD/transmission_logs.jsonl

Reads scan every partition; this backend is meant for a single bench
setup, not for long histories.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

import structlog

from sensorlink.core.models import (
    LogStatistics,
    StoredSample,
    TransmissionLogRecord,
    utc_now,
)
from sensorlink.storage.memory_storage import compute_log_statistics

if TYPE_CHECKING:
    from sensorlink.core.validation import LogFields, SampleFields

log = structlog.get_logger()

SAMPLES_FILE = "samples.jsonl"
LOGS_FILE = "transmission_logs.jsonl"


class FileSensorStore:
    """SensorStore backed by date-partitioned JSON Lines files on disk."""

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._next_sample_id = 1 + max((r["id"] for r in self._read(SAMPLES_FILE)), default=0)
        self._next_log_id = 1 + max((r["id"] for r in self._read(LOGS_FILE)), default=0)

    def _day_dir(self, dt: datetime) -> Path:
        """Return the directory for a given timestamp."""
        path = self._base_dir / f"{dt.year:04d}" / f"{dt.month:02d}" / f"{dt.day:02d}"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _append(self, filename: str, timestamp: datetime, entry: dict) -> Path:
        path = self._day_dir(timestamp) / filename
        with open(path, "a") as f:
            f.write(json.dumps(entry, separators=(",", ":")) + "\n")
        return path

    def _read(self, filename: str) -> Iterator[dict]:
        for path in sorted(self._base_dir.glob(f"*/*/*/{filename}")):
            with open(path) as f:
                for lineno, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        yield json.loads(line)
                    except json.JSONDecodeError:
                        log.warning("corrupt_record_skipped", path=str(path), line=lineno)

    @staticmethod
    def _parse_ts(value: str) -> datetime:
        dt = datetime.fromisoformat(value)
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

    def _to_sample(self, raw: dict) -> StoredSample:
        return StoredSample(
            id=raw["id"],
            latitude=raw["latitude"],
            longitude=raw["longitude"],
            accuracy=raw.get("accuracy"),
            accel_x=raw["accel_x"],
            accel_y=raw["accel_y"],
            accel_z=raw["accel_z"],
            timestamp=self._parse_ts(raw["timestamp"]),
        )

    def _to_log(self, raw: dict) -> TransmissionLogRecord:
        return TransmissionLogRecord(
            id=raw["id"],
            target_address=raw["target_address"],
            success=raw["success"],
            error_message=raw.get("error_message"),
            sample_id=raw.get("sample_id"),
            timestamp=self._parse_ts(raw["timestamp"]),
        )

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
        self._next_sample_id += 1
        path = self._append(SAMPLES_FILE, sample.timestamp, sample.to_dict())
        log.debug("sample_written", sample_id=sample.id, path=str(path))
        return sample

    async def recent_samples(self, limit: int) -> list[StoredSample]:
        samples = [self._to_sample(raw) for raw in self._read(SAMPLES_FILE)]
        samples.sort(key=lambda s: (s.timestamp, s.id), reverse=True)
        return samples[:limit]

    async def create_log(self, fields: LogFields) -> TransmissionLogRecord:
        record = TransmissionLogRecord(
            id=self._next_log_id,
            target_address=fields.target_address,
            success=fields.success,
            error_message=fields.error_message,
            sample_id=fields.sample_id,
            timestamp=utc_now(),
        )
        self._next_log_id += 1
        path = self._append(LOGS_FILE, record.timestamp, record.to_dict())
        log.debug("transmission_log_written", log_id=record.id, path=str(path))
        return record

    async def transmission_stats(self) -> LogStatistics:
        return compute_log_statistics(self._to_log(raw) for raw in self._read(LOGS_FILE))
