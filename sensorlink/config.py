"""SensorLink configuration.

Loads from config.yaml if present, with environment variable overrides.
Environment variables use the pattern: SENSORLINK_<SECTION>_<KEY> (uppercase).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 5000
    env: str = "dev"  # "dev" or "prod"


@dataclass
class StorageConfig:
    backend: str = "memory"  # "memory" or "file"
    base_dir: str = "data/sensorlink"


@dataclass
class TransmitterConfig:
    target_address: str = "192.168.1.50"
    interval_seconds: float = 2.0
    request_timeout_seconds: float = 5.0
    relay_url: str = ""  # e.g. "http://localhost:5000"; empty disables the fallback
    persistence_url: str = ""  # empty disables outcome logging


@dataclass
class SensorsConfig:
    high_accuracy: bool = True
    location_timeout_seconds: float = 10.0
    tracking_max_age_seconds: float = 5.0
    initial_max_age_seconds: float = 60.0


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"  # "console" or "json"


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    transmitter: TransmitterConfig = field(default_factory=TransmitterConfig)
    sensors: SensorsConfig = field(default_factory=SensorsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config: AppConfig) -> None:
    """Override config values from environment variables."""
    mapping = {
        "SENSORLINK_SERVER_HOST": lambda v: setattr(config.server, "host", v),
        "SENSORLINK_SERVER_PORT": lambda v: setattr(config.server, "port", int(v)),
        "SENSORLINK_SERVER_ENV": lambda v: setattr(config.server, "env", v),
        "SENSORLINK_STORAGE_BACKEND": lambda v: setattr(config.storage, "backend", v),
        "SENSORLINK_STORAGE_BASE_DIR": lambda v: setattr(config.storage, "base_dir", v),
        "SENSORLINK_TRANSMITTER_TARGET_ADDRESS": lambda v: setattr(config.transmitter, "target_address", v),
        "SENSORLINK_TRANSMITTER_INTERVAL": lambda v: setattr(config.transmitter, "interval_seconds", float(v)),
        "SENSORLINK_TRANSMITTER_TIMEOUT": lambda v: setattr(config.transmitter, "request_timeout_seconds", float(v)),
        "SENSORLINK_TRANSMITTER_RELAY_URL": lambda v: setattr(config.transmitter, "relay_url", v),
        "SENSORLINK_TRANSMITTER_PERSISTENCE_URL": lambda v: setattr(config.transmitter, "persistence_url", v),
        "SENSORLINK_SENSORS_HIGH_ACCURACY": lambda v: setattr(config.sensors, "high_accuracy", _parse_bool(v)),
        "SENSORLINK_SENSORS_LOCATION_TIMEOUT": lambda v: setattr(config.sensors, "location_timeout_seconds", float(v)),
        "SENSORLINK_LOG_LEVEL": lambda v: setattr(config.logging, "level", v),
        "SENSORLINK_LOG_FORMAT": lambda v: setattr(config.logging, "format", v),
    }
    for env_key, setter in mapping.items():
        val = os.environ.get(env_key)
        if val is not None:
            setter(val)


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML file + environment overrides."""
    config = AppConfig()

    if config_path is None:
        config_path = Path(os.environ.get("SENSORLINK_CONFIG", "config.yaml"))
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        for section_name in ("server", "storage", "transmitter", "sensors", "logging"):
            section = getattr(config, section_name)
            for k, v in (raw.get(section_name) or {}).items():
                if hasattr(section, k):
                    setattr(section, k, v)

    # Environment overrides always win
    _apply_env_overrides(config)
    return config
