"""Tests for the simulated microcontroller endpoint."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from tools.simulator import fake_device


@pytest.fixture
async def device():
    fake_device.received.clear()
    transport = ASGITransport(app=fake_device.app)
    async with AsyncClient(transport=transport, base_url="http://device") as c:
        yield c


@pytest.mark.asyncio
async def test_accepts_sensor_payload(device):
    payload = {"gps": {"latitude": 45.76, "longitude": 4.83, "accuracy": 5.0},
               "accelerometer": {"x": 0.1, "y": -0.2, "z": 9.8}, "timestamp": 1}
    resp = await device.post("/sensor-data", json=payload)
    assert resp.status_code == 200
    assert fake_device.received == [payload]


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [b"not json", b"[1, 2]"])
async def test_rejects_bad_body_with_json_error(device, content):
    resp = await device.post("/sensor-data", content=content,
                             headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["ok"] is False
    assert fake_device.received == []
