"""SensorLink server — main entry point.

Serves the persistence API (samples, transmission logs, statistics) and the
relay fallback. This is the only file that knows about concrete
implementations; it wires together the storage, relay, and API layers.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI

from sensorlink.api.monitoring import router as monitoring_router
from sensorlink.api.relay import router as relay_router
from sensorlink.api.samples import router as samples_router
from sensorlink.api.transmissions import router as transmissions_router
from sensorlink.client.device import DeviceClient
from sensorlink.config import AppConfig, load_config
from sensorlink.core.stats import ServerStats
from sensorlink.log import setup_logging
from sensorlink.storage.base import SensorStore
from sensorlink.storage.file_storage import FileSensorStore
from sensorlink.storage.memory_storage import MemorySensorStore

log = structlog.get_logger()

# Module-level singletons (set during startup)
_store: SensorStore | None = None
_stats: ServerStats | None = None
_relay: DeviceClient | None = None
_config: AppConfig | None = None


def get_store() -> SensorStore:
    assert _store is not None, "Server not initialized"
    return _store


def get_stats() -> ServerStats:
    assert _stats is not None, "Server not initialized"
    return _stats


def get_relay() -> DeviceClient:
    assert _relay is not None, "Server not initialized"
    return _relay


def get_config() -> AppConfig:
    assert _config is not None, "Server not initialized"
    return _config


def create_store(config: AppConfig) -> SensorStore:
    if config.storage.backend == "file":
        return FileSensorStore(base_dir=config.storage.base_dir)
    if config.storage.backend == "memory":
        return MemorySensorStore()
    raise ValueError(f"unknown storage backend: {config.storage.backend!r}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    global _store, _stats, _relay, _config

    _config = load_config()
    setup_logging(_config)

    log.info("server_starting",
             env=_config.server.env,
             storage_backend=_config.storage.backend,
             storage_dir=_config.storage.base_dir)

    _stats = ServerStats()
    _store = create_store(_config)
    http = httpx.AsyncClient()
    _relay = DeviceClient(http, timeout=_config.transmitter.request_timeout_seconds)

    log.info("server_started",
             host=_config.server.host,
             port=_config.server.port)

    yield

    await http.aclose()
    log.info("server_stopped")


app = FastAPI(
    title="SensorLink",
    description="Sensor sample persistence and device relay",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(samples_router)
app.include_router(transmissions_router)
app.include_router(relay_router)
app.include_router(monitoring_router)
