"""Tests for envelope building and attribute normalization."""

import json
import math

import pytest

from faro_lite.context import ContextStore
from faro_lite.envelope import (
    EnvelopeBuilder,
    EnvelopeKind,
    LogLevel,
    Measurement,
    MonotonicClock,
    build_envelope,
    normalize_attributes,
)


REQUIRED_KEYS = {"type", "timestamp", "attributes", "session", "user"}


class TestNormalizeAttributes:
    def test_passes_scalars(self):
        attrs = normalize_attributes({"s": "a", "i": 1, "f": 1.5, "b": True})
        assert attrs == {"s": "a", "i": 1, "f": 1.5, "b": True}
        assert attrs["b"] is True

    def test_drops_none(self):
        assert normalize_attributes({"a": None, "b": 1}) == {"b": 1}

    def test_nested_mapping(self):
        attrs = normalize_attributes({"outer": {"inner": {"x": 1, "gone": None}}})
        assert attrs == {"outer": {"inner": {"x": 1}}}

    def test_other_values_become_strings(self):
        attrs = normalize_attributes({"items": [1, 2], 3: "three"})
        assert attrs == {"items": "[1, 2]", "3": "three"}

    def test_non_finite_float(self):
        attrs = normalize_attributes({"nan": float("nan"), "inf": float("inf")})
        assert attrs == {"nan": "nan", "inf": "inf"}

    def test_empty_and_invalid(self):
        assert normalize_attributes(None) == {}
        assert normalize_attributes({}) == {}
        assert normalize_attributes(["not", "a", "mapping"]) == {}


class TestBuildEnvelope:
    def test_screen_view_example(self, context):
        envelope = build_envelope(
            EnvelopeKind.EVENT,
            {"screen_name": "Home"},
            context,
            name="screen_view",
        )

        d = envelope.to_dict()
        timestamp = d.pop("timestamp")
        assert isinstance(timestamp, int)
        assert d == {
            "type": "event",
            "name": "screen_view",
            "attributes": {"screen_name": "Home", "platform": "x"},
            "session": {"platform": "x", "session_id": "s1"},
            "user": {},
        }

    def test_empty_attributes_still_well_formed(self, context):
        envelope = build_envelope("event", {}, context, name="ping")
        d = envelope.to_dict()
        assert REQUIRED_KEYS <= set(d)
        assert d["attributes"] == {"platform": "x"}

    def test_no_platform_no_default(self):
        envelope = build_envelope("log", None, ContextStore(), message="hello")
        d = envelope.to_dict()
        assert REQUIRED_KEYS <= set(d)
        assert d["attributes"] == {}
        assert d["message"] == "hello"
        assert "name" not in d

    def test_payload_wins_over_defaults(self, context):
        envelope = build_envelope("event", {"platform": "override"}, context, name="e")
        assert envelope.attributes["platform"] == "override"

    def test_snapshot_is_isolated(self, context):
        envelope = build_envelope("event", None, context, name="e")
        context.set_session({"platform": "changed", "extra": 1})
        context.set_user({"id": "u1"})

        assert envelope.session == {"platform": "x", "session_id": "s1"}
        assert envelope.user == {}

    def test_to_json_is_deterministic(self, context):
        envelope = build_envelope("event", {"b": 2, "a": 1}, context, name="e")
        raw = envelope.to_json()
        assert raw == envelope.to_json()
        decoded = json.loads(raw)
        assert list(decoded) == sorted(decoded)
        assert list(decoded["attributes"]) == ["a", "b", "platform"]


class TestMonotonicClock:
    def test_never_goes_backwards(self):
        readings = iter([10.0, 9.0, 11.0, 10.5])
        clock = MonotonicClock(source=lambda: next(readings))

        values = [clock.now_ms() for _ in range(4)]
        assert values == [10000, 10000, 11000, 11000]

    def test_default_clock_non_decreasing(self, context):
        stamps = [build_envelope("event", None, context, name="e").timestamp for _ in range(200)]
        assert stamps == sorted(stamps)


class TestEnvelopeBuilder:
    def test_measurement(self, context):
        builder = EnvelopeBuilder(context=context)
        envelope = builder.measurement(Measurement("page_load", 812.5, "ms", {"page": "/"}))

        d = envelope.to_dict()
        assert d["type"] == "measurement"
        assert d["name"] == "page_load"
        assert d["value"] == 812.5
        assert d["unit"] == "ms"
        assert d["attributes"] == {"page": "/", "platform": "x"}

    def test_measurement_non_finite_value(self, context):
        builder = EnvelopeBuilder(context=context)
        envelope = builder.measurement(Measurement("weird", math.inf))
        assert envelope.to_dict()["value"] == "inf"

    def test_error(self, context):
        builder = EnvelopeBuilder(context=context)
        envelope = builder.error(
            "boom",
            error_type="ValueError",
            stack="Traceback...",
            context={"screen": "Cart"},
        )

        d = envelope.to_dict()
        assert d["type"] == "error"
        assert d["message"] == "boom"
        assert d["error_type"] == "ValueError"
        assert d["stack"] == "Traceback..."
        assert d["attributes"] == {"screen": "Cart", "platform": "x"}

    def test_error_without_stack(self, context):
        envelope = EnvelopeBuilder(context=context).error("boom", error_type="Error")
        assert "stack" not in envelope.to_dict()

    def test_log(self, context):
        envelope = EnvelopeBuilder(context=context).log("hi", level="warning")
        d = envelope.to_dict()
        assert d["type"] == "log"
        assert d["level"] == "warn"
        assert d["message"] == "hi"

    def test_enrich_adds_fields(self, context):
        builder = EnvelopeBuilder(
            context=context,
            enrich=lambda: {"trace": {"trace_id": "t", "span_id": "s"}},
        )
        d = builder.event("e").to_dict()
        assert d["trace"] == {"trace_id": "t", "span_id": "s"}

    def test_enrich_cannot_clobber_core_keys(self, context):
        builder = EnvelopeBuilder(context=context, enrich=lambda: {"type": "bogus"})
        assert builder.event("e").to_dict()["type"] == "event"


class TestLogLevel:
    @pytest.mark.parametrize("raw,expected", [
        ("info", LogLevel.INFO),
        ("WARN", LogLevel.WARN),
        ("warning", LogLevel.WARN),
        ("error", LogLevel.ERROR),
        ("debug", LogLevel.DEBUG),
        ("nonsense", LogLevel.INFO),
        (None, LogLevel.INFO),
        (LogLevel.ERROR, LogLevel.ERROR),
    ])
    def test_parse(self, raw, expected):
        assert LogLevel.parse(raw) is expected
