"""
=============================================================================
APPLICATION ASSEMBLY
=============================================================================

Wires the components together and runs the process lifecycle.

    ServerConfig
        │
        ▼
    create_app()
        ├── RequestMetrics
        ├── HealthHandler(metrics)
        ├── RouteTable  /hello → handle_hello
        │               /health → health.handle        (frozen)
        ├── ErrorHandler
        ├── Dispatcher(routes, error_handler, metrics)
        ├── ShutdownCoordinator(shutdown_timeout)
        └── HTTPServer(config, dispatcher, coordinator)

    run()
        configure logging → create app → install signals
        → install loop exception handler   (uncaught error → log, exit 1)
        → start server ─── fails ──► return 1
        → wait for shutdown ───────► return 0

=============================================================================
"""

import asyncio
import logging
import sys
from dataclasses import dataclass

from .config import APP_NAME, APP_VERSION, ServerConfig
from .core.dispatcher import Dispatcher
from .core.error_handler import ErrorHandler
from .core.metrics import RequestMetrics
from .core.server import HTTPServer, ServerError, create_server, start_server
from .core.shutdown import ShutdownCoordinator
from .handlers.health import HealthHandler
from .handlers.hello import handle_hello
from .http.router import RouteTable
from .logs import configure_logging


logger = logging.getLogger(__name__)


@dataclass
class Application:
    """Everything one running server is made of."""
    config: ServerConfig
    metrics: RequestMetrics
    routes: RouteTable
    dispatcher: Dispatcher
    coordinator: ShutdownCoordinator
    server: HTTPServer


def build_route_table(health_handler: HealthHandler) -> RouteTable:
    """The two routes this server knows, frozen."""
    table = RouteTable()
    table.add("/hello", handle_hello, name="hello")
    table.add("/health", health_handler.handle, name="health")
    return table.freeze()


def create_app(config: ServerConfig) -> Application:
    metrics = RequestMetrics()
    routes = build_route_table(HealthHandler(metrics))
    dispatcher = Dispatcher(routes, ErrorHandler(), metrics)
    coordinator = ShutdownCoordinator(timeout=config.shutdown_timeout)
    server = create_server(config, dispatcher, coordinator=coordinator)

    return Application(
        config=config,
        metrics=metrics,
        routes=routes,
        dispatcher=dispatcher,
        coordinator=coordinator,
        server=server,
    )


def install_exception_handler(loop: asyncio.AbstractEventLoop, exit_func=sys.exit):
    """
    Route errors nothing else caught (a task that died unobserved, a
    failing loop callback) to one ERROR record, then exit 1.

    Returns:
        The handler that was installed before, for restoring later.
    """
    previous = loop.get_exception_handler()

    def handle_exception(loop, context):
        error = context.get("exception")
        message = context.get("message", "Unhandled exception in event loop")
        logger.error(
            f"Unhandled exception: {message}",
            exc_info=error,
            extra={"error": repr(error) if error is not None else message},
        )
        exit_func(1)

    loop.set_exception_handler(handle_exception)
    return previous


async def run(config: ServerConfig) -> int:
    """
    Run the server until a signal shuts it down.

    Returns:
        Process exit code: 0 after a clean shutdown, 1 if startup failed.
    """
    configure_logging(config.log_level, config.log_format, production=config.is_production)
    logger.info(
        f"Starting {APP_NAME} v{APP_VERSION}",
        extra={"env": config.env},
    )

    app = create_app(config)
    app.coordinator.install()
    loop = asyncio.get_running_loop()
    previous_handler = install_exception_handler(loop)

    try:
        try:
            await start_server(app.server)
        except (ServerError, OSError) as e:
            logger.error(f"Failed to start server: {e}")
            return 1

        await app.coordinator.wait_closed()
        return 0
    finally:
        loop.set_exception_handler(previous_handler)
        app.coordinator.uninstall()
