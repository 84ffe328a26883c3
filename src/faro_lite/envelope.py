"""Envelope types and the envelope builder."""

from __future__ import annotations

import json
import math
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping, Union

if TYPE_CHECKING:
    from .context import ContextStore


AttributeValue = Union[str, int, float, bool, "dict[str, AttributeValue]"]


class EnvelopeKind(str, Enum):
    """Kind of telemetry carried by an envelope."""
    EVENT = "event"
    MEASUREMENT = "measurement"
    ERROR = "error"
    LOG = "log"


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @classmethod
    def parse(cls, value: Any) -> LogLevel:
        """Lenient parse; unknown levels map to INFO."""
        if isinstance(value, LogLevel):
            return value
        text = str(value or "").strip().lower()
        if text == "warning":
            return cls.WARN
        try:
            return cls(text)
        except ValueError:
            return cls.INFO


def _normalize_value(value: Any) -> AttributeValue | None:
    if value is None:
        return None
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, Enum):
        return _normalize_value(value.value)
    if isinstance(value, Mapping):
        return normalize_attributes(value)
    return str(value)


def normalize_attributes(attributes: Mapping[str, Any] | None) -> dict[str, AttributeValue]:
    """
    Coerce an arbitrary mapping into attribute values.

    Keys become strings, None values are dropped, nested mappings recurse,
    and anything outside str/int/float/bool/mapping becomes its str().
    """
    if not attributes:
        return {}
    if not isinstance(attributes, Mapping):
        return {}
    result: dict[str, AttributeValue] = {}
    for key, value in attributes.items():
        normalized = _normalize_value(value)
        if normalized is None:
            continue
        result[str(key)] = normalized
    return result


@dataclass(frozen=True)
class Measurement:
    """A single numeric sample, kept apart from events for aggregation."""
    name: str
    value: float
    unit: str = "ms"
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Envelope:
    """
    The unit shipped to the collector.

    Wraps one event, measurement, error or log plus the session and user
    context at the time it was built. ``fields`` holds kind-specific
    top-level keys (value/unit, stack/error_type, level, trace, ...).
    """
    type: EnvelopeKind
    timestamp: int
    attributes: dict[str, Any]
    session: dict[str, Any]
    user: dict[str, Any]
    name: str | None = None
    message: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire mapping. Unset name/message are omitted."""
        data: dict[str, Any] = {
            "type": self.type.value,
            "timestamp": self.timestamp,
            "attributes": dict(self.attributes),
            "session": dict(self.session),
            "user": dict(self.user),
        }
        if self.name is not None:
            data["name"] = self.name
        if self.message is not None:
            data["message"] = self.message
        for key, value in self.fields.items():
            data.setdefault(key, value)
        return data

    def to_json(self) -> bytes:
        """Deterministic JSON encoding (sorted keys, compact separators)."""
        return json.dumps(
            self.to_dict(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        ).encode("utf-8")


class MonotonicClock:
    """Wall-clock milliseconds that never go backwards."""

    def __init__(self, source: Callable[[], float] = time.time) -> None:
        self._source = source
        self._last = 0
        self._lock = threading.Lock()

    def now_ms(self) -> int:
        current = int(self._source() * 1000)
        with self._lock:
            if current < self._last:
                current = self._last
            self._last = current
            return current


_default_clock = MonotonicClock()


def default_attributes(session: Mapping[str, Any]) -> dict[str, Any]:
    """Attributes every envelope carries unless the caller overrides them."""
    platform = session.get("platform")
    return {"platform": platform} if platform is not None else {}


def build_envelope(
    kind: EnvelopeKind | str,
    payload: Mapping[str, Any] | None,
    context: ContextStore,
    *,
    name: str | None = None,
    message: str | None = None,
    fields: Mapping[str, Any] | None = None,
    clock: MonotonicClock | None = None,
) -> Envelope:
    """
    Build an envelope from a payload and the current context.

    The timestamp always comes from the clock, never from the caller.
    Payload attributes are merged over the defaults, so the caller wins.
    """
    snapshot = context.snapshot()
    attributes = {
        **default_attributes(snapshot.session),
        **normalize_attributes(payload),
    }
    return Envelope(
        type=EnvelopeKind(kind),
        timestamp=(clock or _default_clock).now_ms(),
        attributes=attributes,
        session=snapshot.session,
        user=snapshot.user,
        name=name,
        message=message,
        fields=dict(fields or {}),
    )


@dataclass
class EnvelopeBuilder:
    """Binds a context store and a clock; one per client."""
    context: ContextStore
    clock: MonotonicClock = field(default_factory=MonotonicClock)

    # Extra top-level fields added to every envelope (e.g. trace ids)
    enrich: Callable[[], Mapping[str, Any]] | None = None

    def build(
        self,
        kind: EnvelopeKind | str,
        payload: Mapping[str, Any] | None = None,
        *,
        name: str | None = None,
        message: str | None = None,
        fields: Mapping[str, Any] | None = None,
    ) -> Envelope:
        extra = dict(fields or {})
        if self.enrich is not None:
            for key, value in (self.enrich() or {}).items():
                extra.setdefault(key, value)
        return build_envelope(
            kind,
            payload,
            self.context,
            name=name,
            message=message,
            fields=extra,
            clock=self.clock,
        )

    def event(self, name: str, attributes: Mapping[str, Any] | None = None) -> Envelope:
        return self.build(EnvelopeKind.EVENT, attributes, name=name)

    def measurement(self, measurement: Measurement) -> Envelope:
        value = measurement.value
        if isinstance(value, float) and not math.isfinite(value):
            value = str(value)
        return self.build(
            EnvelopeKind.MEASUREMENT,
            measurement.attributes,
            name=measurement.name,
            fields={"value": value, "unit": measurement.unit},
        )

    def error(
        self,
        message: str,
        *,
        error_type: str,
        stack: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> Envelope:
        extra: dict[str, Any] = {"error_type": error_type}
        if stack:
            extra["stack"] = stack
        return self.build(EnvelopeKind.ERROR, context, message=message, fields=extra)

    def log(
        self,
        message: str,
        *,
        level: LogLevel | str = LogLevel.INFO,
        context: Mapping[str, Any] | None = None,
    ) -> Envelope:
        return self.build(
            EnvelopeKind.LOG,
            context,
            message=message,
            fields={"level": LogLevel.parse(level).value},
        )
