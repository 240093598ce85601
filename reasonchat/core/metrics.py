"""
In-process metrics for chat turns, exposed through the readiness probe.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

TURN_COUNTERS = ("turns_completed", "turns_failed", "turns_cancelled", "sse_pings_sent")


@dataclass
class _Summary:
    count: int = 0
    total: float = 0.0
    maximum: float = 0.0

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.maximum = max(self.maximum, value)

    def as_dict(self) -> dict[str, float]:
        return {"count": self.count, "sum": round(self.total, 6), "max": round(self.maximum, 6)}


class MetricsRegistry:
    """Counters, gauges and duration summaries guarded by one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, float] = dict.fromkeys(TURN_COUNTERS, 0.0)
        self._gauges: dict[str, float] = {"active_streams": 0.0}
        self._summaries: dict[str, _Summary] = {"stream_duration_seconds": _Summary()}

    def increment(self, name: str, amount: float = 1.0) -> None:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0.0) + amount

    def observe(self, name: str, value: float) -> None:
        """Add one observation (e.g. a stream duration) to a summary."""
        with self._lock:
            self._summaries.setdefault(name, _Summary()).add(value)

    def set_gauge(self, name: str, value: float) -> None:
        with self._lock:
            self._gauges[name] = value

    def snapshot(self) -> dict[str, dict]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "gauges": dict(self._gauges),
                "summaries": {name: s.as_dict() for name, s in self._summaries.items()},
            }


metrics = MetricsRegistry()
