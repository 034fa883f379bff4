"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

import sensorlink.main as main_module
from sensorlink.client.device import DeviceClient
from sensorlink.config import AppConfig
from sensorlink.core.errors import SensorLinkError
from sensorlink.core.models import LocationReading, MotionReading, SendResult
from sensorlink.core.stats import ServerStats
from sensorlink.sensors.base import PermissionOutcome, Subscription
from sensorlink.storage.memory_storage import MemorySensorStore


async def settle(rounds: int = 20) -> None:
    """Let pending tasks run until the event loop goes quiet."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeDevice:
    """httpx MockTransport handler standing in for microcontrollers.

    ``behavior`` maps a host to "ok", "timeout", "refused", or an HTTP status.
    """

    def __init__(self) -> None:
        self.behavior: dict[str, object] = {}
        self.received: list[tuple[str, bytes]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        action = self.behavior.get(host, "ok")
        if action == "timeout":
            raise httpx.ReadTimeout("timed out", request=request)
        if action == "refused":
            raise httpx.ConnectError("connection refused", request=request)
        self.received.append((host, request.content))
        if isinstance(action, int):
            return httpx.Response(action, json={"ok": False})
        return httpx.Response(200, json={"ok": True})


class FakeLocationAdapter:
    def __init__(self, outcome=PermissionOutcome.GRANTED, raises: Exception | None = None,
                 initial: LocationReading | None = None) -> None:
        self.outcome = outcome
        self.raises = raises
        self.initial = initial
        self.requests = 0
        self.subscriptions: list[Subscription] = []
        self._on_reading = None
        self._on_error = None

    async def request_permission(self) -> PermissionOutcome:
        self.requests += 1
        if self.raises is not None:
            raise self.raises
        return self.outcome

    def subscribe(self, on_reading, on_error) -> Subscription:
        self._on_reading, self._on_error = on_reading, on_error
        sub = Subscription(lambda: None)
        self.subscriptions.append(sub)
        if self.initial is not None:
            on_reading(self.initial)
        return sub

    @property
    def active(self) -> bool:
        return any(s.active for s in self.subscriptions)

    def emit(self, reading) -> None:
        if self.active:
            self._on_reading(reading)

    def fail(self, error: SensorLinkError) -> None:
        if self.active:
            self._on_error(error)


class FakeMotionAdapter(FakeLocationAdapter):
    pass


class StubTransmitter:
    """Transmitter returning queued results; ``gate`` holds sends open."""

    def __init__(self, *results: SendResult) -> None:
        self.results = list(results)
        self.calls: list[tuple[object, str]] = []
        self.gate: asyncio.Event | None = None

    async def send(self, sample, target_address: str) -> SendResult:
        self.calls.append((sample, target_address))
        if self.gate is not None:
            await self.gate.wait()
        if self.results:
            return self.results.pop(0)
        return SendResult(success=True)


class StubPersistence:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.samples: list = []
        self.outcomes: list = []

    async def record_sample(self, sample) -> dict:
        if self.fail:
            raise httpx.ConnectError("persistence down")
        self.samples.append(sample)
        return {"id": len(self.samples)}

    async def record_outcome(self, outcome, sample_id=None) -> dict:
        self.outcomes.append((outcome, sample_id))
        return {"id": len(self.outcomes)}


@pytest.fixture
def location_reading() -> LocationReading:
    return LocationReading(latitude=45.764043, longitude=4.835659, accuracy=5.0,
                           captured_at=datetime(2026, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def motion_reading() -> MotionReading:
    return MotionReading(x=0.1, y=-0.2, z=9.8)


@pytest.fixture
def fake_device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture(autouse=True)
async def _init_server(fake_device):
    """Initialize server singletons for every test, with devices mocked out."""
    config = AppConfig()
    config.storage.backend = "memory"
    config.logging.level = "warning"

    relay_http = httpx.AsyncClient(transport=httpx.MockTransport(fake_device))

    # Patch module-level singletons
    main_module._config = config
    main_module._stats = ServerStats()
    main_module._store = MemorySensorStore()
    main_module._relay = DeviceClient(relay_http)

    yield

    # Cleanup
    await relay_http.aclose()
    main_module._config = None
    main_module._stats = None
    main_module._store = None
    main_module._relay = None


@pytest.fixture
async def client():
    from sensorlink.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
