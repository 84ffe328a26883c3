"""Telemetry client and module-level default client."""

from __future__ import annotations

import logging
import math
import threading
import traceback
import weakref
from dataclasses import dataclass, field
from typing import Any, Mapping

from .config import ClientConfig
from .context import ContextStore
from .dispatcher import Dispatcher
from .envelope import Envelope, EnvelopeBuilder, LogLevel, Measurement
from .tracing import current_trace_context
from .transport import Transport, create_transport


logger = logging.getLogger(__name__)


@dataclass
class FaroClient:
    """
    Client for shipping telemetry envelopes to a collector.

    Usage:
        client = FaroClient()
        client.push_event("screen_view", {"screen_name": "Home"})

        # Or with custom config
        client = FaroClient(config=ClientConfig(
            url="http://collector:4328/collect",
            app_name="checkout-service",
            environment="staging",
        ))

    Every push and setter swallows internal errors (logged at WARNING),
    so telemetry can never break the host application.
    """
    config: ClientConfig = field(default_factory=ClientConfig)

    # Injected collaborators (built from config when omitted)
    transport: Transport | None = None
    context: ContextStore | None = None

    _builder: EnvelopeBuilder = field(init=False, repr=False)
    _dispatcher: Dispatcher | None = field(default=None, init=False, repr=False)
    _exit_drain_registered: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.context is None:
            self.context = ContextStore(session_attributes=self.config.base_session())

        enrich = current_trace_context if self.config.tracing_enabled else None
        self._builder = EnvelopeBuilder(context=self.context, enrich=enrich)

        if not self.config.enabled:
            logger.info("Telemetry client disabled (enabled=False)")
            return

        if self.transport is None:
            self.transport = create_transport(self.config)

        self._dispatcher = Dispatcher(
            transport=self.transport,
            max_queue_size=self.config.max_queue_size,
            workers=self.config.workers,
            flush_timeout_seconds=self.config.flush_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start background dispatch (also done lazily on first push)."""
        if self._dispatcher is None:
            return
        self._dispatcher.start()
        if (
            self.config.flush_on_exit
            and self._dispatcher.is_running
            and not self._exit_drain_registered
        ):
            self._exit_drain_registered = _register_exit_drain(self)

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for every envelope pushed so far to be attempted."""
        if self._dispatcher is None:
            return True
        return self._dispatcher.flush(timeout)

    def shutdown(self, timeout: float | None = None) -> None:
        """Drain and stop background dispatch. Safe to call more than once."""
        if self._dispatcher is not None:
            self._dispatcher.shutdown(timeout)

    def __enter__(self) -> FaroClient:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    @property
    def enabled(self) -> bool:
        return self._dispatcher is not None

    @property
    def stats(self) -> dict:
        if self._dispatcher is None:
            return {"enabled": False}
        return {"enabled": True, **self._dispatcher.stats}

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def set_session(self, attributes: Mapping[str, Any] | None) -> None:
        """Merge attributes into the session context."""
        try:
            self.context.set_session(attributes)
        except Exception as e:
            logger.warning(f"Failed to set session attributes: {e!r}")

    def set_user(self, user_id: Any, attributes: Mapping[str, Any] | None = None) -> None:
        """Replace the user context with ``{"id": user_id, **attributes}``."""
        try:
            identity: dict[str, Any] = dict(attributes or {})
            if user_id is not None:
                identity["id"] = str(user_id)
            self.context.set_user(identity)
        except Exception as e:
            logger.warning(f"Failed to set user: {e!r}")

    def clear_user(self) -> None:
        try:
            self.context.clear_user()
        except Exception as e:
            logger.warning(f"Failed to clear user: {e!r}")

    # ------------------------------------------------------------------
    # Push API
    # ------------------------------------------------------------------

    def push_event(self, name: str, attributes: Mapping[str, Any] | None = None) -> bool:
        """
        Push a named event.

        Returns True if the envelope was queued (not whether it was sent).
        """
        try:
            if self._dispatcher is None:
                return False
            event_name = str(name or "").strip() or "unnamed_event"
            return self._ship(self._builder.event(event_name, attributes))
        except Exception as e:
            logger.warning(f"Failed to push event {name!r}: {e!r}")
            return False

    def push_measurement(
        self,
        measurement: Measurement | str,
        value: float | None = None,
        unit: str = "ms",
        attributes: Mapping[str, Any] | None = None,
    ) -> bool:
        """
        Push a numeric measurement.

        Accepts either a Measurement or (name, value, unit, attributes).
        Ignored when metrics are disabled.
        """
        try:
            if self._dispatcher is None:
                return False
            if not self.config.metrics_enabled:
                logger.debug("Metrics disabled, skipping measurement")
                return False
            if not isinstance(measurement, Measurement):
                measurement = Measurement(
                    name=str(measurement or "").strip() or "unnamed_metric",
                    value=_as_number(value),
                    unit=str(unit or "ms"),
                    attributes=dict(attributes or {}),
                )
            return self._ship(self._builder.measurement(measurement))
        except Exception as e:
            logger.warning(f"Failed to push measurement: {e!r}")
            return False

    def push_error(
        self,
        error: BaseException | str,
        context: Mapping[str, Any] | None = None,
    ) -> bool:
        """Push an error captured from the host application."""
        try:
            if self._dispatcher is None:
                return False
            if isinstance(error, BaseException):
                message = str(error) or type(error).__name__
                error_type = type(error).__name__
                stack = format_stack(error)
            else:
                message = str(error or "Unknown error")
                error_type = "Error"
                stack = None
            return self._ship(
                self._builder.error(message, error_type=error_type, stack=stack, context=context)
            )
        except Exception as e:
            logger.warning(f"Failed to push error: {e!r}")
            return False

    def push_log(
        self,
        message: str,
        level: LogLevel | str = LogLevel.INFO,
        context: Mapping[str, Any] | None = None,
    ) -> bool:
        """Push a structured log line."""
        try:
            if self._dispatcher is None:
                return False
            return self._ship(self._builder.log(str(message), level=level, context=context))
        except Exception as e:
            logger.warning(f"Failed to push log: {e!r}")
            return False

    def _ship(self, envelope: Envelope) -> bool:
        if not self._dispatcher.is_running:
            self.start()
        return self._dispatcher.submit(envelope)


def _as_number(value: Any) -> float | int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    number = float(value)
    return number if math.isfinite(number) else 0.0


def format_stack(error: BaseException) -> str | None:
    """Formatted traceback of ``error``, or None when it was never raised."""
    if error.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def _register_exit_drain(client: FaroClient) -> bool:
    """
    Shut ``client`` down when the interpreter exits.

    Uses the threading exit hooks, which run before concurrent.futures
    stops its executors (plain atexit runs after), so exit-time sends can
    still resolve hostnames. These hooks cannot be removed: the client is
    held weakly and draining a client that is already shut down is a no-op.
    """
    ref = weakref.ref(client)

    def drain() -> None:
        target = ref()
        if target is not None:
            target.shutdown()

    try:
        threading._register_atexit(drain)
    except RuntimeError:
        # Interpreter is already shutting down
        logger.debug("Exit drain not registered: interpreter shutting down")
        return False
    return True


# Module-level default client
_default_client: FaroClient | None = None


def get_client() -> FaroClient:
    """Get or create the default client."""
    global _default_client
    if _default_client is None:
        _default_client = FaroClient()
    return _default_client


def set_client(client: FaroClient | None) -> None:
    """Replace the default client (None resets it)."""
    global _default_client
    _default_client = client


def configure(config: ClientConfig | None = None, **overrides: Any) -> FaroClient:
    """
    Build and install a default client.

    Any previous default client is shut down first.
    """
    global _default_client
    if config is None:
        config = ClientConfig(**overrides)
    elif overrides:
        config = ClientConfig(**{**config.to_dict(), **overrides})
    previous = _default_client
    _default_client = FaroClient(config=config)
    if previous is not None:
        previous.shutdown()
    return _default_client
