"""
Request and error counters reported by /health.

One RequestMetrics instance is created per application and handed to the
collaborators that need it (dispatcher writes, health handler reads).
There is no module-level counter state.
"""

import threading
import time
from dataclasses import dataclass


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time copy of the counters."""
    request_count: int
    error_count: int
    uptime_seconds: int


class RequestMetrics:
    """
    Request/error counters plus uptime. Reads and updates take a
    threading.Lock.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._started_at = clock()
        self._lock = threading.Lock()
        self._request_count = 0
        self._error_count = 0

    def increment_requests(self) -> int:
        with self._lock:
            self._request_count += 1
            return self._request_count

    def increment_errors(self) -> int:
        with self._lock:
            self._error_count += 1
            return self._error_count

    @property
    def request_count(self) -> int:
        with self._lock:
            return self._request_count

    @property
    def error_count(self) -> int:
        with self._lock:
            return self._error_count

    @property
    def uptime_seconds(self) -> int:
        """Whole seconds since these metrics were created."""
        return int(self._clock() - self._started_at)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            requests, errors = self._request_count, self._error_count
        return MetricsSnapshot(
            request_count=requests,
            error_count=errors,
            uptime_seconds=self.uptime_seconds,
        )
