"""
=============================================================================
HELLOSERVER - Minimal HTTP Server With A Careful Request Lifecycle
=============================================================================

Two endpoints, nothing else:

    GET /hello    → 200 text/plain "Hello world"
    GET /health   → 200 application/json {status, uptime, memory, metrics}

What the package is really about is everything around them: routing,
method validation, one uniform error response path, security headers on
every response, and a graceful shutdown that runs exactly once.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    helloserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m helloserver)
    ├── app.py               # Wires components, runs the lifecycle
    ├── config.py            # ServerConfig dataclass
    ├── logs.py              # Logging setup (text / JSON)
    ├── core/                # Request lifecycle
    │   ├── server.py        # asyncio listener + state machine
    │   ├── dispatcher.py    # Path → handler, errors → error handler
    │   ├── error_handler.py # Error → response + log record
    │   ├── shutdown.py      # Signal-driven shutdown coordinator
    │   └── metrics.py       # Request / error counters
    ├── http/                # HTTP protocol components
    │   ├── request.py       # Request head parsing
    │   ├── response.py      # Response building, security headers
    │   ├── router.py        # Prefix route table
    │   ├── errors.py        # HttpError taxonomy
    │   └── status_codes.py  # HTTP status enum
    └── handlers/
        ├── hello.py         # /hello
        └── health.py        # /health

=============================================================================
QUICK START
=============================================================================

    python -m helloserver --port 3000

    curl -i http://127.0.0.1:3000/hello
    curl -s http://127.0.0.1:3000/health

Or from code:

    import asyncio
    from helloserver import ServerConfig, run

    asyncio.run(run(ServerConfig(port=8000)))

=============================================================================
"""

__version__ = "1.0.0"

from .app import Application, build_route_table, create_app, run
from .config import APP_NAME, APP_VERSION, ServerConfig
from .core import (
    Dispatcher,
    ErrorHandler,
    HTTPServer,
    RequestMetrics,
    ServerState,
    ShutdownCoordinator,
    StartupTimeoutError,
    create_server,
    start_server,
    stop_server,
)
from .http import HttpError, HTTPResponse, HTTPStatus, RouteTable

__all__ = [
    "__version__",
    "APP_NAME",
    "APP_VERSION",
    "Application",
    "build_route_table",
    "create_app",
    "run",
    "ServerConfig",
    "Dispatcher",
    "ErrorHandler",
    "HTTPServer",
    "RequestMetrics",
    "ServerState",
    "ShutdownCoordinator",
    "StartupTimeoutError",
    "create_server",
    "start_server",
    "stop_server",
    "HttpError",
    "HTTPResponse",
    "HTTPStatus",
    "RouteTable",
]
