"""Tests for the persistence and relay API endpoints."""

from __future__ import annotations

import json

import pytest

import sensorlink.main as main_module

SAMPLE = {
    "latitude": 45.764043,
    "longitude": 4.835659,
    "accuracy": 5.0,
    "accel_x": 0.12,
    "accel_y": -0.3,
    "accel_z": 9.79,
}


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["storage_backend"] == "memory"
    assert "uptime_seconds" in data


@pytest.mark.asyncio
async def test_stats_empty(client):
    resp = await client.get("/stats")
    assert resp.status_code == 200
    data = resp.json()
    assert data["samples_stored"] == 0
    assert data["relay"]["requests"] == 0


@pytest.mark.asyncio
async def test_create_sample(client):
    resp = await client.post("/samples", json=SAMPLE)
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == 1
    assert data["latitude"] == SAMPLE["latitude"]
    assert data["accel_z"] == SAMPLE["accel_z"]
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_create_sample_without_accuracy(client):
    body = dict(SAMPLE)
    del body["accuracy"]
    resp = await client.post("/samples", json=body)
    assert resp.status_code == 200
    assert resp.json()["accuracy"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("patch", [
    {"latitude": None},
    {"accel_x": "fast"},
    {"latitude": 91.0},
    {"longitude": -200.0},
    {"accuracy": -1},
])
async def test_create_sample_rejects_invalid(client, patch):
    body = {**SAMPLE, **patch}
    resp = await client.post("/samples", json=body)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid sensor data"

    stats = (await client.get("/stats")).json()
    assert stats["validation_errors"] == 1
    assert stats["samples_stored"] == 0


@pytest.mark.asyncio
async def test_invalid_json(client):
    resp = await client.post(
        "/samples",
        content=b"not json at all",
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_recent_samples_newest_first(client):
    for i in range(5):
        await client.post("/samples", json={**SAMPLE, "accel_x": float(i)})

    resp = await client.get("/samples", params={"limit": 3})
    assert resp.status_code == 200
    data = resp.json()
    assert [s["id"] for s in data] == [5, 4, 3]


@pytest.mark.asyncio
async def test_recent_samples_default_limit(client):
    for _ in range(12):
        await client.post("/samples", json=SAMPLE)

    resp = await client.get("/samples")
    assert len(resp.json()) == 10


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", ["0", "-3", "abc", ""])
async def test_recent_samples_bad_limit_uses_default(client, limit):
    for _ in range(12):
        await client.post("/samples", json=SAMPLE)

    resp = await client.get("/samples", params={"limit": limit})
    assert resp.status_code == 200
    assert len(resp.json()) == 10


@pytest.mark.asyncio
async def test_transmission_log_and_stats(client):
    for success in (True, True, False, True):
        resp = await client.post("/transmission-logs", json={
            "target_address": "192.168.1.50",
            "success": success,
            "error_message": None if success else "Device responded with status 500",
        })
        assert resp.status_code == 200

    resp = await client.get("/transmission-stats")
    data = resp.json()
    assert data["total"] == 4
    assert data["successful"] == 3
    assert data["success_rate"] == 75.0
    assert "last_transmission" in data


@pytest.mark.asyncio
async def test_transmission_stats_empty(client):
    resp = await client.get("/transmission-stats")
    data = resp.json()
    assert data == {"total": 0, "successful": 0, "success_rate": 0.0}


@pytest.mark.asyncio
async def test_transmission_log_links_sample(client):
    sample = (await client.post("/samples", json=SAMPLE)).json()
    resp = await client.post("/transmission-logs", json={
        "target_address": "192.168.1.50",
        "success": True,
        "sample_id": sample["id"],
    })
    assert resp.json()["sample_id"] == sample["id"]


@pytest.mark.asyncio
async def test_transmission_log_rejects_invalid(client):
    resp = await client.post("/transmission-logs", json={"target_address": "192.168.1.50", "success": "yes"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid transmission log"


@pytest.mark.asyncio
async def test_relay_send_success(client, fake_device):
    payload = {"gps": {"latitude": 1.0, "longitude": 2.0, "accuracy": None},
               "accelerometer": {"x": 0, "y": 0, "z": 9.8}, "timestamp": 1}
    resp = await client.post("/relay-send", json={"target_address": "192.168.1.50", "payload": payload})
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    host, body = fake_device.received[0]
    assert host == "192.168.1.50"
    assert json.loads(body) == payload

    stats = (await client.get("/stats")).json()
    assert stats["relay"]["successes"] == 1
    assert "192.168.1.50" in stats["relay"]["active_targets"]


@pytest.mark.asyncio
async def test_relay_send_device_status_error(client, fake_device):
    fake_device.behavior["192.168.1.50"] = 500
    resp = await client.post("/relay-send", json={"target_address": "192.168.1.50", "payload": {}})
    assert resp.status_code == 500
    data = resp.json()
    assert data["success"] is False
    assert "500" in data["error"]


@pytest.mark.asyncio
async def test_relay_send_device_timeout(client, fake_device):
    fake_device.behavior["192.168.1.50"] = "timeout"
    resp = await client.post("/relay-send", json={"target_address": "192.168.1.50", "payload": {}})
    assert resp.status_code == 500
    assert "timed out" in resp.json()["error"]


@pytest.mark.asyncio
async def test_relay_send_requires_fields(client):
    resp = await client.post("/relay-send", json={"payload": {}})
    assert resp.status_code == 400
    assert resp.json()["error"] == "target_address and payload are required"


@pytest.mark.asyncio
async def test_relay_send_rejects_bad_address(client):
    resp = await client.post("/relay-send", json={"target_address": "http://evil/x", "payload": {}})
    assert resp.status_code == 400


class BrokenStore:
    """Store whose disk is full."""

    async def create_sample(self, fields):
        raise OSError("disk full")

    async def recent_samples(self, limit):
        raise OSError("disk full")

    async def create_log(self, fields):
        raise OSError("disk full")

    async def transmission_stats(self):
        raise OSError("disk full")


@pytest.mark.asyncio
@pytest.mark.parametrize("method, path, body, error", [
    ("POST", "/samples", SAMPLE, "Failed to store sensor data"),
    ("GET", "/samples", None, "Failed to retrieve sensor data"),
    ("POST", "/transmission-logs", {"target_address": "192.168.1.50", "success": True},
     "Failed to store transmission log"),
    ("GET", "/transmission-stats", None, "Failed to retrieve transmission stats"),
])
async def test_storage_failure_returns_500(client, monkeypatch, method, path, body, error):
    monkeypatch.setattr(main_module, "_store", BrokenStore())

    resp = await client.request(method, path, json=body)
    assert resp.status_code == 500
    assert resp.json() == {"error": error}

    stats = (await client.get("/stats")).json()
    assert stats["storage_errors"] == 1
    assert stats["samples_stored"] == 0
    assert stats["logs_stored"] == 0
