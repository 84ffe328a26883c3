"""
faro-lite - lightweight telemetry client

Ships observability envelopes (events, measurements, errors, logs) to a
remote HTTP collector:
- Session and user context attached to every envelope
- Best-effort, non-blocking delivery that never raises into the host
- flush() / shutdown() for a graceful drain
- Typed helpers for screen views, gestures, cart events and timings

Usage:
    from faro_lite import FaroClient, ClientConfig

    client = FaroClient(config=ClientConfig(url="http://localhost:4328/collect"))
    client.set_user("user-42", {"plan": "pro"})
    client.push_event("screen_view", {"screen_name": "Home"})
    client.shutdown()
"""

__version__ = "0.1.0"

from .client import FaroClient, configure, get_client, set_client
from .config import ClientConfig, CollectorConfig, Config
from .context import ContextStore
from .envelope import Envelope, EnvelopeBuilder, EnvelopeKind, LogLevel, Measurement, build_envelope
from .errors import ConfigError, FaroError

__all__ = [
    # Client
    "FaroClient",
    "configure",
    "get_client",
    "set_client",
    # Config
    "ClientConfig",
    "CollectorConfig",
    "Config",
    # Envelopes and context
    "ContextStore",
    "Envelope",
    "EnvelopeBuilder",
    "EnvelopeKind",
    "LogLevel",
    "Measurement",
    "build_envelope",
    # Exceptions
    "FaroError",
    "ConfigError",
]
