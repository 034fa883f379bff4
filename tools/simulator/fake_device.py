#!/usr/bin/env python3
"""Stand-in for the microcontroller's HTTP endpoint.

Accepts ``POST /sensor-data`` like the firmware does, with optional random
failures and latency so the relay fallback and statistics can be exercised
without hardware.

Usage:
    FAKE_DEVICE_FAILURE_RATE=0.3 FAKE_DEVICE_LATENCY=0.2 \
        uvicorn tools.simulator.fake_device:app --port 8081
"""

from __future__ import annotations

import asyncio
import os
import random

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

log = structlog.get_logger()

FAILURE_RATE = float(os.environ.get("FAKE_DEVICE_FAILURE_RATE", "0"))
LATENCY = float(os.environ.get("FAKE_DEVICE_LATENCY", "0"))

app = FastAPI(title="Fake device")

received: list[dict] = []


@app.post("/sensor-data")
async def sensor_data(request: Request) -> JSONResponse:
    if LATENCY:
        await asyncio.sleep(random.uniform(0, LATENCY))
    if random.random() < FAILURE_RATE:
        log.info("fake_device_failing")
        return JSONResponse(content={"ok": False}, status_code=503)

    try:
        body = await request.json()
    except ValueError:
        log.info("fake_device_bad_body")
        return JSONResponse(content={"ok": False, "error": "invalid JSON"}, status_code=400)
    if not isinstance(body, dict):
        return JSONResponse(content={"ok": False, "error": "expected a JSON object"}, status_code=400)
    received.append(body)
    gps = body.get("gps", {})
    accel = body.get("accelerometer", {})
    log.info("sample_received",
             lat=gps.get("latitude"), lon=gps.get("longitude"),
             ax=accel.get("x"), ay=accel.get("y"), az=accel.get("z"),
             count=len(received))
    return JSONResponse(content={"ok": True})
