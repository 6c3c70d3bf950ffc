"""
=============================================================================
HEALTH CHECK HANDLER
=============================================================================

GET /health reports liveness plus a few numbers an operator wants at a
glance:

    {
      "status": "ok",
      "uptime": 42,                         ← whole seconds
      "memory": {
        "rss": "23.41 MB",                  ← current resident set size
        "heapTotal": "1.20 MB",             ← tracemalloc peak
        "heapUsed": "0.85 MB",              ← tracemalloc current
        "external": "0.00 MB"
      },
      "metrics": {
        "requestCount": 17,
        "errorCount": 2
      }
    }

Any method other than GET gets a 405, like every other route.

=============================================================================
MEMORY FIGURES
=============================================================================

    rss        /proc/self/statm resident pages × page size;
               where there is no /proc, the peak from
               resource.getrusage(RUSAGE_SELF).ru_maxrss
    heapTotal  tracemalloc peak     ┐ 0.00 MB unless tracing was started
    heapUsed   tracemalloc current  ┘ (PYTHONTRACEMALLOC=1)
    external   no Python equivalent, always 0.00 MB

Responses are served with Cache-Control: no-store (see http.response).
A cached health response could report a dead process as healthy.

=============================================================================
"""

import os
import sys
import tracemalloc
from typing import Dict

from ..core.metrics import RequestMetrics
from ..http.errors import method_not_allowed_error
from ..http.response import json_response
from ..http.router import RouteResult

try:
    import resource
except ImportError:  # Windows has no resource module
    resource = None


_MB = 1024 * 1024
_STATM_PATH = "/proc/self/statm"


def format_megabytes(num_bytes: float) -> str:
    """12582912 → "12.00 MB"."""
    return f"{num_bytes / _MB:.2f} MB"


def _peak_rss_bytes() -> int:
    if resource is None:
        return 0
    maxrss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    if sys.platform == "darwin":
        return maxrss
    return maxrss * 1024


def _current_rss_bytes() -> int:
    # statm fields are in pages: size resident shared text lib data dt
    try:
        with open(_STATM_PATH) as f:
            resident_pages = int(f.read().split()[1])
    except (OSError, IndexError, ValueError):
        return _peak_rss_bytes()
    return resident_pages * os.sysconf("SC_PAGE_SIZE")


def process_memory() -> Dict[str, str]:
    """Memory figures for the health payload, formatted as "x.xx MB"."""
    if tracemalloc.is_tracing():
        current, peak = tracemalloc.get_traced_memory()
    else:
        current, peak = 0, 0

    return {
        "rss": format_megabytes(_current_rss_bytes()),
        "heapTotal": format_megabytes(peak),
        "heapUsed": format_megabytes(current),
        "external": format_megabytes(0),
    }


class HealthHandler:
    """
    /health endpoint handler.

    Reads (never writes) the application's RequestMetrics.

        health = HealthHandler(metrics)
        table.add("/health", health.handle)
    """

    def __init__(self, metrics: RequestMetrics):
        self.metrics = metrics

    def payload(self) -> dict:
        snapshot = self.metrics.snapshot()
        return {
            "status": "ok",
            "uptime": snapshot.uptime_seconds,
            "memory": process_memory(),
            "metrics": {
                "requestCount": snapshot.request_count,
                "errorCount": snapshot.error_count,
            },
        }

    def handle(self, method: str, path: str) -> RouteResult:
        if method != "GET":
            return method_not_allowed_error()
        return json_response(self.payload())
