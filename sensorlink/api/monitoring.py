"""Health check and monitoring endpoints."""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    """Basic health check."""
    from sensorlink.main import get_config, get_stats

    config = get_config()
    snapshot = get_stats().snapshot()
    return {
        "status": "ok",
        "version": "0.1.0",
        "uptime_seconds": snapshot["uptime_seconds"],
        "storage_backend": config.storage.backend,
    }


@router.get("/stats")
async def stats() -> dict:
    """Server counters: stored records, validation errors, relay activity.

    The ``relay.active_targets`` section lists target addresses the relay
    forwarded to within the last ``window_seconds``.
    """
    from sensorlink.main import get_stats

    return get_stats().snapshot()
