"""Correlate envelopes with the active OpenTelemetry span."""

from __future__ import annotations

from typing import Any

from opentelemetry import trace


def current_trace_context() -> dict[str, Any]:
    """
    Trace/span ids of the active span, as a ``{"trace": {...}}`` fragment.

    Empty when no valid span is active (including when no tracer provider
    is configured), so it can be merged into an envelope unconditionally.
    """
    span = trace.get_current_span()
    ctx = span.get_span_context()
    if not ctx.is_valid:
        return {}
    return {
        "trace": {
            "trace_id": format(ctx.trace_id, "032x"),
            "span_id": format(ctx.span_id, "016x"),
        }
    }
