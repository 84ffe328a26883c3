"""Configuration for the faro-lite client and development collector."""

from __future__ import annotations

import logging
import os
import time
import uuid
from dataclasses import dataclass, field, fields
from typing import Any

from .errors import ConfigError


TRANSPORT_TYPES = ("http", "console", "file")

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def generate_session_id(prefix: str = "python") -> str:
    """Session id in the ``<prefix>-<epoch ms>-<random>`` form."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


@dataclass
class ClientConfig:
    """
    Configuration for the telemetry client.

    Can be set via:
    - Constructor arguments
    - Environment variables (FARO_*), read once when the config is built
    - Config file (see Config.from_yaml)
    """
    # Collector endpoint
    url: str = field(
        default_factory=lambda: os.environ.get("FARO_URL", "http://localhost:4328/collect")
    )

    # Application identity, copied into the session context
    app_name: str = field(
        default_factory=lambda: os.environ.get("FARO_APP_NAME", "faro-lite-app")
    )
    app_version: str = field(
        default_factory=lambda: os.environ.get("FARO_APP_VERSION", "1.0.0")
    )
    environment: str = field(
        default_factory=lambda: os.environ.get("FARO_ENVIRONMENT", "development")
    )
    platform: str = field(
        default_factory=lambda: os.environ.get("FARO_PLATFORM", "python")
    )
    session_id: str = field(default_factory=generate_session_id)

    # Feature toggles
    enabled: bool = field(default_factory=lambda: _env_bool("FARO_ENABLED", True))
    metrics_enabled: bool = field(
        default_factory=lambda: _env_bool("FARO_METRICS_ENABLED", True)
    )
    tracing_enabled: bool = field(
        default_factory=lambda: _env_bool("FARO_TRACING_ENABLED", True)
    )

    log_level: str = field(
        default_factory=lambda: os.environ.get("FARO_LOG_LEVEL", "INFO")
    )

    # Send timeout (seconds)
    timeout: float = field(default_factory=lambda: _env_float("FARO_TIMEOUT", 5.0))

    # Extra attempts after a failed send (0 = best-effort, single attempt)
    retries: int = 0
    retry_backoff_seconds: float = 0.5

    # Transport selection
    transport_type: str = field(
        default_factory=lambda: os.environ.get("FARO_TRANSPORT", "http")
    )
    transport_config: dict[str, Any] = field(default_factory=dict)

    # Dispatcher
    max_queue_size: int = 10000
    workers: int = 4
    flush_timeout_seconds: float = 5.0
    flush_on_exit: bool = True

    # Extra session attributes seeded at startup
    session_attributes: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.transport_type = self.transport_type.strip().lower()
        if self.transport_type not in TRANSPORT_TYPES:
            raise ConfigError(
                f"Unknown transport_type {self.transport_type!r} "
                f"(expected one of {', '.join(TRANSPORT_TYPES)})"
            )
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")
        if self.retries < 0:
            raise ConfigError("retries must be >= 0")
        if self.max_queue_size < 1 or self.workers < 1:
            raise ConfigError("max_queue_size and workers must be >= 1")

    @property
    def log_level_value(self) -> int:
        """Numeric logging level, INFO when the name is unknown."""
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO

    def base_session(self) -> dict[str, Any]:
        """Fixed session fields every envelope carries."""
        return {
            "platform": self.platform,
            "session_id": self.session_id,
            "app_name": self.app_name,
            "app_version": self.app_version,
            "environment": self.environment,
            **self.session_attributes,
        }

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class CollectorConfig:
    """Development collector configuration."""
    host: str = "127.0.0.1"
    port: int = 4328
    path: str = "/collect"

    # Ring buffer size for received envelopes
    max_events: int = 10000

    service_name: str = "faro-lite-collector"
    environment: str = "development"


@dataclass
class Config:
    """Main configuration container."""
    client: ClientConfig = field(default_factory=ClientConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        if not isinstance(data, dict):
            raise ConfigError("Config root must be a mapping")
        try:
            return cls(
                client=ClientConfig(**data.get("client", {})),
                collector=CollectorConfig(**data.get("collector", {})),
            )
        except TypeError as e:
            raise ConfigError(f"Invalid config: {e}") from e

    @classmethod
    def from_yaml(cls, path: str) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> Config:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)
