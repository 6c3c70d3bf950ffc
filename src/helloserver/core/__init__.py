"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The request lifecycle, from listener to process exit:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         HTTP SERVER                                 │
    │  • Binds the asyncio listener, races the startup timeout            │
    │  • Reads one request head per connection, writes one response       │
    │  • CREATED → STARTING → LISTENING → SHUTTING_DOWN → STOPPED         │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                         DISPATCHER                                  │
    │  • Strips the query, matches the route table, calls the handler     │
    │  • Sends every failure to the error handler                         │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ERROR HANDLER                               │
    │  • HttpError or exception → one response, one log record            │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    SHUTDOWN COORDINATOR                             │
    │  • SIGINT/SIGTERM → server.stop() exactly once, under a deadline    │
    └─────────────────────────────────────────────────────────────────────┘

RequestMetrics holds the counters the dispatcher writes and /health reads.

=============================================================================
"""

from .dispatcher import Dispatcher
from .error_handler import ErrorHandler
from .metrics import MetricsSnapshot, RequestMetrics
from .server import (
    HTTPServer,
    ServerError,
    ServerState,
    StartupTimeoutError,
    create_server,
    start_server,
    stop_server,
)
from .shutdown import ShutdownCoordinator

__all__ = [
    "Dispatcher",
    "ErrorHandler",
    "MetricsSnapshot",
    "RequestMetrics",
    "HTTPServer",
    "ServerError",
    "ServerState",
    "StartupTimeoutError",
    "create_server",
    "start_server",
    "stop_server",
    "ShutdownCoordinator",
]
