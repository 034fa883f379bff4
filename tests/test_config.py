"""Tests for YAML + environment configuration loading."""

from __future__ import annotations

import os

import pytest

from sensorlink.config import AppConfig, load_config
from sensorlink.main import create_store
from sensorlink.storage.file_storage import FileSensorStore
from sensorlink.storage.memory_storage import MemorySensorStore


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("SENSORLINK_"):
            monkeypatch.delenv(key)


def test_defaults(tmp_path):
    config = load_config(tmp_path / "missing.yaml")
    assert config.transmitter.target_address == "192.168.1.50"
    assert config.transmitter.interval_seconds == 2.0
    assert config.transmitter.request_timeout_seconds == 5.0
    assert config.sensors.location_timeout_seconds == 10.0
    assert config.sensors.tracking_max_age_seconds == 5.0
    assert config.sensors.initial_max_age_seconds == 60.0
    assert config.storage.backend == "memory"


def test_yaml_sections(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "transmitter:\n"
        "  target_address: 10.0.0.9\n"
        "  relay_url: http://relay.local:5000\n"
        "  unknown_key: ignored\n"
        "storage:\n"
        "  backend: file\n"
        "logging:\n"
        "  format: json\n"
    )
    config = load_config(path)
    assert config.transmitter.target_address == "10.0.0.9"
    assert config.transmitter.relay_url == "http://relay.local:5000"
    assert not hasattr(config.transmitter, "unknown_key")
    assert config.storage.backend == "file"
    assert config.logging.format == "json"


def test_empty_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(path) == AppConfig()


def test_env_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("transmitter:\n  target_address: 10.0.0.9\n")
    monkeypatch.setenv("SENSORLINK_TRANSMITTER_TARGET_ADDRESS", "192.168.4.1")
    monkeypatch.setenv("SENSORLINK_TRANSMITTER_INTERVAL", "0.5")
    monkeypatch.setenv("SENSORLINK_SERVER_PORT", "8080")
    monkeypatch.setenv("SENSORLINK_SENSORS_HIGH_ACCURACY", "false")

    config = load_config(path)
    assert config.transmitter.target_address == "192.168.4.1"
    assert config.transmitter.interval_seconds == 0.5
    assert config.server.port == 8080
    assert config.sensors.high_accuracy is False


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("server:\n  env: prod\n")
    monkeypatch.setenv("SENSORLINK_CONFIG", str(path))
    assert load_config().server.env == "prod"


def test_create_store(tmp_path):
    config = AppConfig()
    assert isinstance(create_store(config), MemorySensorStore)

    config.storage.backend = "file"
    config.storage.base_dir = str(tmp_path / "data")
    assert isinstance(create_store(config), FileSensorStore)

    config.storage.backend = "s3"
    with pytest.raises(ValueError):
        create_store(config)
