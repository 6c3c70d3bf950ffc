"""
=============================================================================
HTTP SERVER LIFECYCLE
=============================================================================

Owns the asyncio listener and walks it through a small state machine:

    ┌─────────┐  start()  ┌──────────┐  bound   ┌───────────┐
    │ CREATED │──────────►│ STARTING │─────────►│ LISTENING │
    └─────────┘           └──────────┘          └───────────┘
                               │                      │ stop()
                     timeout / │                      ▼
                     OSError   │              ┌───────────────┐
                               │              │ SHUTTING_DOWN │
                               ▼              └───────────────┘
                          ┌─────────┐                 │ closed
                          │ STOPPED │◄────────────────┘
                          └─────────┘

A state never goes backwards; an illegal transition raises RuntimeError.

=============================================================================
STARTUP RACE
=============================================================================

start() races the bind against config.startup_timeout:

    bind finishes first   → LISTENING, stop() registered for shutdown
    timeout fires first   → StartupTimeoutError, STOPPED
    bind raises OSError   → error re-raised, STOPPED
                            (EADDRINUSE gets its own log record)

asyncio.wait_for() settles the race exactly once and cancels the loser,
so no timer is left behind.

=============================================================================
ONE CONNECTION, ONE REQUEST
=============================================================================

    accept ─► read head (request_timeout) ─► parse ─► dispatch ─► write ─► close
                   │                           │
                   │ client gone → DEBUG log   │ unreadable → 400 / 413
                   │ too slow    → 408         │
                   ▼                           ▼
                 close                  ErrorHandler response

Every response carries "Connection: close". There is no keep-alive.

=============================================================================
"""

import asyncio
import errno
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple

from ..config import ServerConfig
from ..http.errors import bad_request_error
from ..http.request import HTTPParseError, RequestContext, RequestParser
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus
from .dispatcher import Dispatcher


logger = logging.getLogger(__name__)


class ServerState(Enum):
    CREATED = "created"
    STARTING = "starting"
    LISTENING = "listening"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


_ALLOWED_TRANSITIONS = {
    ServerState.CREATED: {ServerState.STARTING},
    ServerState.STARTING: {ServerState.LISTENING, ServerState.STOPPED},
    ServerState.LISTENING: {ServerState.SHUTTING_DOWN},
    ServerState.SHUTTING_DOWN: {ServerState.STOPPED},
    ServerState.STOPPED: set(),
}


class ServerError(Exception):
    """Base class for server lifecycle failures."""


class StartupTimeoutError(ServerError):
    """The listener did not come up within the startup timeout."""

    def __init__(self, timeout: float):
        super().__init__(f"Server failed to start within {timeout:g}s")
        self.timeout = timeout


# Signature of asyncio.start_server; injectable so tests can stall or
# fail the bind.
ListenFactory = Callable[..., Awaitable[asyncio.AbstractServer]]


class HTTPServer:
    """
    The listener plus its lifecycle.

    Use create_server() / start_server() / stop_server() rather than
    calling the methods directly; they are what the application wires up.

    Args:
        config: Server configuration.
        dispatcher: Turns each parsed request into a response.
        coordinator: Optional shutdown coordinator; stop() is registered
                     with it once the server is listening.
        listen: Listener factory (default: asyncio.start_server).
    """

    def __init__(
        self,
        config: ServerConfig,
        dispatcher: Dispatcher,
        coordinator=None,
        listen: ListenFactory = asyncio.start_server,
    ):
        self.config = config
        self.dispatcher = dispatcher
        self.coordinator = coordinator
        self._listen = listen
        self._parser = RequestParser(max_request_size=config.max_request_size)
        self._server: Optional[asyncio.AbstractServer] = None
        self._state = ServerState.CREATED

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def is_listening(self) -> bool:
        return (
            self._state is ServerState.LISTENING
            and self._server is not None
            and self._server.is_serving()
        )

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the configured pair until bound."""
        sockets = getattr(self._server, "sockets", None) if self._server else None
        if sockets:
            sockname = sockets[0].getsockname()
            return sockname[0], sockname[1]
        return self.config.host, self.config.port

    def _transition(self, new_state: ServerState) -> None:
        if new_state not in _ALLOWED_TRANSITIONS[self._state]:
            raise RuntimeError(
                f"Invalid server state transition: {self._state.value} → {new_state.value}"
            )
        logger.debug(f"Server state {self._state.value} → {new_state.value}")
        self._state = new_state

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def on_listener_error(self, error: OSError) -> None:
        """
        Log a listener failure. Never ends the process; whoever awaited
        start() decides what to do.
        """
        host, port = self.config.host, self.config.port
        if getattr(error, "errno", None) == errno.EADDRINUSE:
            logger.error(
                f"Port {port} is already in use",
                extra={"error_code": "EADDRINUSE", "host": host, "port": port},
            )
        else:
            code = errno.errorcode.get(getattr(error, "errno", None) or 0, "UNKNOWN")
            logger.error(
                f"Server error: {error}",
                extra={"error_code": code, "host": host, "port": port},
            )

    async def start(self) -> "HTTPServer":
        """
        Bind and start listening.

        Raises:
            StartupTimeoutError: Bind did not finish within startup_timeout.
            OSError: Bind failed (address in use, permission denied, ...).
            RuntimeError: start() was already called.
        """
        self._transition(ServerState.STARTING)
        timeout = self.config.startup_timeout

        try:
            self._server = await asyncio.wait_for(
                self._listen(
                    self._handle_connection,
                    host=self.config.host,
                    port=self.config.port,
                    limit=self.config.max_request_size,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            # Checked before OSError: on 3.11+ TimeoutError subclasses it.
            self._transition(ServerState.STOPPED)
            logger.error(f"Server failed to start within {timeout:g}s")
            raise StartupTimeoutError(timeout) from None
        except OSError as e:
            self._transition(ServerState.STOPPED)
            self.on_listener_error(e)
            raise

        self._transition(ServerState.LISTENING)
        host, port = self.address
        logger.info(
            f"Server listening on http://{host}:{port}",
            extra={"host": host, "port": port, "env": self.config.env},
        )

        if self.coordinator is not None:
            self.coordinator.register(self.stop)

        return self

    async def stop(self) -> None:
        """
        Stop accepting connections and wait for the listener to close.

        In-flight connections are allowed to finish. Calling stop() on a
        server that is not listening only logs.
        """
        if self._state is not ServerState.LISTENING or self._server is None:
            logger.info(f"Server is not running (state: {self._state.value}); nothing to stop")
            return

        self._transition(ServerState.SHUTTING_DOWN)
        logger.info("Closing server, waiting for open connections to finish")

        self._server.close()
        await self._server.wait_closed()

        self._transition(ServerState.STOPPED)
        logger.info("Server closed")

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        peer = writer.get_extra_info("peername")
        client_address = (peer[0], peer[1]) if peer else ("", 0)
        context = RequestContext(method="-", path="-", client_address=client_address)

        try:
            try:
                head = await asyncio.wait_for(
                    reader.readuntil(b"\r\n\r\n"),
                    timeout=self.config.request_timeout,
                )
            except asyncio.IncompleteReadError:
                logger.debug(f"Client {client_address[0]} disconnected before sending a request")
                return
            except asyncio.LimitOverrunError:
                await self._send(writer, self._reject(HTTPStatus.PAYLOAD_TOO_LARGE, context))
                return
            except asyncio.TimeoutError:
                await self._send(writer, self._reject(HTTPStatus.REQUEST_TIMEOUT, context))
                return

            try:
                request = self._parser.parse(head, client_address)
            except HTTPParseError as e:
                logger.debug(f"Unparseable request from {client_address[0]}: {e.message}")
                response = self._reject(e.status_code, context)
            else:
                response = self.dispatcher.dispatch(
                    request.method,
                    request.target,
                    RequestContext.from_request(request),
                )

            await self._send(writer, response)

        except (ConnectionResetError, BrokenPipeError) as e:
            logger.debug(f"Connection to {client_address[0]} lost: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionResetError, BrokenPipeError) as e:
                logger.debug(f"Error closing connection: {e}")

    def _reject(self, status: int, context: RequestContext) -> HTTPResponse:
        """Answer a request that never reached the dispatcher's routing."""
        return self.dispatcher.fail(bad_request_error(status_code=int(status)), context)

    async def _send(self, writer: asyncio.StreamWriter, response: HTTPResponse) -> None:
        response.set_header("Connection", "close")
        writer.write(response.to_bytes(self.config.server_name))
        await writer.drain()


# =============================================================================
# MODULE API
# =============================================================================

def create_server(
    config: ServerConfig,
    dispatcher: Dispatcher,
    coordinator=None,
) -> HTTPServer:
    """Build a server in state CREATED. Nothing is bound yet."""
    return HTTPServer(config, dispatcher, coordinator=coordinator)


async def start_server(server: HTTPServer) -> HTTPServer:
    """Start listening; see HTTPServer.start() for the outcomes."""
    return await server.start()


async def stop_server(server: Optional[HTTPServer]) -> None:
    """Stop a server. None and not-listening servers are logged no-ops."""
    if server is None:
        logger.warning("stop_server() called without a server; nothing to stop")
        return
    await server.stop()
