"""Client for the persistence API (samples and transmission logs)."""

from __future__ import annotations

import httpx

from sensorlink.core.models import SensorSample, TransmissionOutcome


class PersistenceClient:
    """Thin HTTP wrapper. Raises httpx errors; callers decide what to swallow."""

    def __init__(self, http: httpx.AsyncClient, base_url: str, timeout: float = 5.0) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def _post(self, path: str, body: dict) -> dict:
        resp = await self._http.post(f"{self._base_url}{path}", json=body, timeout=self._timeout)
        resp.raise_for_status()
        return resp.json()

    async def _get(self, path: str, params: dict | None = None):
        resp = await self._http.get(f"{self._base_url}{path}", params=params, timeout=self._timeout)
        resp.raise_for_status()
        return resp.json()

    async def record_sample(self, sample: SensorSample) -> dict:
        """Store a raw sample. Returns the stored record (with ``id``)."""
        return await self._post("/samples", sample.to_record())

    async def record_outcome(self, outcome: TransmissionOutcome, sample_id: int | None = None) -> dict:
        return await self._post("/transmission-logs", outcome.to_record(sample_id))

    async def recent_samples(self, limit: int = 10) -> list[dict]:
        return await self._get("/samples", {"limit": limit})

    async def transmission_stats(self) -> dict:
        return await self._get("/transmission-stats")
