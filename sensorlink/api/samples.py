"""Raw sample endpoints.

Thin FastAPI adapter: validates the JSON body into a SampleFields model and
calls the store.
"""

from __future__ import annotations

import pydantic
import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sensorlink.core.validation import SampleFields, error_detail

log = structlog.get_logger()

router = APIRouter()

DEFAULT_LIMIT = 10
MAX_LIMIT = 1000


def parse_limit(raw: str | None) -> int:
    """Missing, unparsable or non-positive limits fall back to the default."""
    try:
        limit = int(raw) if raw is not None else DEFAULT_LIMIT
    except ValueError:
        return DEFAULT_LIMIT
    if limit <= 0:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


@router.post("/samples")
async def create_sample(request: Request) -> JSONResponse:
    """Store one raw sample. Returns the record with its server id and timestamp."""
    from sensorlink.main import get_stats, get_store

    stats = get_stats()
    try:
        fields = SampleFields.model_validate_json(await request.body())
    except pydantic.ValidationError as exc:
        stats.record_validation_error()
        return JSONResponse(
            content={"error": "Invalid sensor data", "detail": error_detail(exc)},
            status_code=400,
        )

    try:
        sample = await get_store().create_sample(fields)
    except Exception:
        stats.record_storage_error()
        log.error("storage_failed", operation="create_sample", exc_info=True)
        return JSONResponse(content={"error": "Failed to store sensor data"}, status_code=500)

    stats.record_sample_stored()
    return JSONResponse(content=sample.to_dict())


@router.get("/samples")
async def recent_samples(limit: str | None = None) -> JSONResponse:
    """Return the most recent samples, newest first."""
    from sensorlink.main import get_stats, get_store

    try:
        samples = await get_store().recent_samples(parse_limit(limit))
    except Exception:
        get_stats().record_storage_error()
        log.error("storage_failed", operation="recent_samples", exc_info=True)
        return JSONResponse(content={"error": "Failed to retrieve sensor data"}, status_code=500)

    return JSONResponse(content=[s.to_dict() for s in samples])
