"""Relay endpoint: delivers a payload to a device on a client's behalf.

Used as the fallback path when a client cannot reach the device directly.
"""

from __future__ import annotations

import json

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sensorlink.core.errors import RemoteStatusError, SensorLinkError
from sensorlink.core.validation import validate_target_address

log = structlog.get_logger()

router = APIRouter()


@router.post("/relay-send")
async def relay_send(request: Request) -> JSONResponse:
    from sensorlink.main import get_relay, get_stats

    try:
        body = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(content={"success": False, "error": "invalid JSON"}, status_code=400)

    target_address = body.get("target_address") if isinstance(body, dict) else None
    payload = body.get("payload") if isinstance(body, dict) else None
    if not target_address or payload is None:
        return JSONResponse(
            content={"success": False, "error": "target_address and payload are required"},
            status_code=400,
        )
    if not isinstance(target_address, str) or not validate_target_address(target_address):
        return JSONResponse(
            content={"success": False, "error": f"invalid target_address: {target_address!r}"},
            status_code=400,
        )

    stats = get_stats()
    try:
        await get_relay().deliver(payload, target_address)
    except RemoteStatusError as exc:
        stats.record_relay(target_address, success=False)
        log.info("relay_device_error", target=target_address, status=exc.status_code)
        return JSONResponse(content={"success": False, "error": str(exc)}, status_code=exc.status_code)
    except SensorLinkError as exc:
        stats.record_relay(target_address, success=False)
        log.info("relay_delivery_failed", target=target_address, error=str(exc))
        return JSONResponse(content={"success": False, "error": str(exc)}, status_code=500)

    stats.record_relay(target_address, success=True)
    log.debug("relay_delivered", target=target_address)
    return JSONResponse(content={"success": True, "message": "Device communication successful"})
