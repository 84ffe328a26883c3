"""Transports - destinations for envelopes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import ConfigError
from .base import SendOutcome, Transport
from .console import ConsoleTransport
from .file import FileTransport
from .http import HttpTransport

if TYPE_CHECKING:
    from ..config import ClientConfig

__all__ = [
    "SendOutcome",
    "Transport",
    "ConsoleTransport",
    "FileTransport",
    "HttpTransport",
    "create_transport",
]


def create_transport(config: ClientConfig) -> Transport:
    """Create the transport named by ``config.transport_type``."""
    transport_type = config.transport_type
    transport_config = dict(config.transport_config)

    try:
        if transport_type == "http":
            return HttpTransport(
                url=transport_config.pop("url", config.url),
                timeout=transport_config.pop("timeout", config.timeout),
                retries=transport_config.pop("retries", config.retries),
                retry_backoff_seconds=transport_config.pop(
                    "retry_backoff_seconds", config.retry_backoff_seconds
                ),
                **transport_config,
            )
        elif transport_type == "console":
            return ConsoleTransport(**transport_config)
        elif transport_type == "file":
            return FileTransport(**transport_config)
    except TypeError as e:
        raise ConfigError(f"Invalid transport_config for {transport_type}: {e}") from e

    raise ConfigError(f"Unknown transport_type: {transport_type}")
