"""In-memory store for envelopes received by the development collector."""

from __future__ import annotations

import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Any


@dataclass
class EventStore:
    """
    Bounded ring buffer of received envelopes.

    Oldest envelopes are evicted once ``max_events`` is reached. Counters
    keep totals for everything ever received, evicted or not.
    """
    max_events: int = 10000

    _events: deque = field(init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _counts: Counter = field(default_factory=Counter, init=False)
    _started_at: float = field(default_factory=time.time, init=False)

    def __post_init__(self):
        self._events = deque(maxlen=max(1, self.max_events))

    def add(self, envelope: dict[str, Any]) -> None:
        with self._lock:
            self._events.append(envelope)
            self._counts[str(envelope.get("type", "unknown"))] += 1

    def recent(self, limit: int = 100, kind: str | None = None) -> list[dict[str, Any]]:
        """Most recent envelopes first, optionally filtered by type."""
        with self._lock:
            events = list(self._events)
        result = []
        for envelope in reversed(events):
            if kind is not None and envelope.get("type") != kind:
                continue
            result.append(envelope)
            if len(result) >= limit:
                break
        return result

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
            self._counts.clear()

    def __len__(self) -> int:
        return len(self._events)

    @property
    def stats(self) -> dict[str, Any]:
        with self._lock:
            by_type = dict(self._counts)
            stored = len(self._events)
        return {
            "total": sum(by_type.values()),
            "stored": stored,
            "by_type": by_type,
            "uptime_seconds": time.time() - self._started_at,
        }
