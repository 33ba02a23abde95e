"""
Lightweight in-memory resize pipeline counters for observability.
"""

from threading import Lock
from typing import Dict

COUNTERS = (
    "requests",
    "cache_hits",
    "cache_misses",
    "fetches",
    "fetch_errors",
    "cache_read_errors",
    "cache_write_errors",
    "single_flight_joins",
)


class ResizeMetrics:
    def __init__(self):
        self._lock = Lock()
        self._counts: Dict[str, int] = {name: 0 for name in COUNTERS}

    def record(self, name: str, amount: int = 1) -> None:
        if name not in self._counts:
            return
        with self._lock:
            self._counts[name] += amount

    def get(self, name: str) -> int:
        with self._lock:
            return self._counts.get(name, 0)

    def snapshot(self) -> Dict[str, int]:
        """Return a copy of the current counters."""
        with self._lock:
            return dict(self._counts)

    def reset(self) -> None:
        with self._lock:
            for name in self._counts:
                self._counts[name] = 0
