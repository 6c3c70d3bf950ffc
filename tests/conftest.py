"""
pytest configuration and fixtures.
"""

import asyncio
import socket

import pytest

from helloserver.app import build_route_table
from helloserver.config import ServerConfig
from helloserver.core.dispatcher import Dispatcher
from helloserver.core.error_handler import ErrorHandler
from helloserver.core.metrics import RequestMetrics
from helloserver.handlers.health import HealthHandler
from helloserver.http.router import RouteTable


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /hello?name=pytest HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration on an OS-assigned port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        env="test",
        log_level="DEBUG",
        startup_timeout=2.0,
        shutdown_timeout=2.0,
        request_timeout=2.0,
    )


@pytest.fixture
def metrics() -> RequestMetrics:
    return RequestMetrics()


@pytest.fixture
def route_table(metrics: RequestMetrics) -> RouteTable:
    """The real /hello + /health table, frozen."""
    return build_route_table(HealthHandler(metrics))


@pytest.fixture
def dispatcher(route_table: RouteTable, metrics: RequestMetrics) -> Dispatcher:
    return Dispatcher(route_table, ErrorHandler(), metrics)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class ExitRecorder:
    """Stands in for sys.exit in shutdown tests."""

    def __init__(self):
        self.codes = []
        self.called = asyncio.Event()

    def __call__(self, code: int) -> None:
        self.codes.append(code)
        self.called.set()


@pytest.fixture
def exit_recorder() -> ExitRecorder:
    return ExitRecorder()
