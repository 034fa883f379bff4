"""Transmission log endpoints."""

from __future__ import annotations

import pydantic
import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sensorlink.core.validation import LogFields, error_detail

log = structlog.get_logger()

router = APIRouter()


@router.post("/transmission-logs")
async def create_transmission_log(request: Request) -> JSONResponse:
    from sensorlink.main import get_stats, get_store

    stats = get_stats()
    try:
        fields = LogFields.model_validate_json(await request.body())
    except pydantic.ValidationError as exc:
        stats.record_validation_error()
        return JSONResponse(
            content={"error": "Invalid transmission log", "detail": error_detail(exc)},
            status_code=400,
        )

    try:
        record = await get_store().create_log(fields)
    except Exception:
        stats.record_storage_error()
        log.error("storage_failed", operation="create_log", exc_info=True)
        return JSONResponse(content={"error": "Failed to store transmission log"}, status_code=500)

    stats.record_log_stored()
    return JSONResponse(content=record.to_dict())


@router.get("/transmission-stats")
async def transmission_stats() -> JSONResponse:
    """Aggregate over every stored log.

    Independent of any client's in-memory session counters; the two are
    never reconciled.
    """
    from sensorlink.main import get_stats, get_store

    try:
        stats = await get_store().transmission_stats()
    except Exception:
        get_stats().record_storage_error()
        log.error("storage_failed", operation="transmission_stats", exc_info=True)
        return JSONResponse(content={"error": "Failed to retrieve transmission stats"}, status_code=500)

    return JSONResponse(content=stats.to_dict())
