"""
Unit tests for the server lifecycle: startup race, state machine, stop.
"""

import asyncio
import errno
import logging
import socket

import pytest

from helloserver.core.server import (
    HTTPServer,
    ServerState,
    StartupTimeoutError,
    create_server,
    start_server,
    stop_server,
)
from helloserver.core.shutdown import ShutdownCoordinator


async def stalled_listen(*args, **kwargs):
    """Listener factory that never finishes binding."""
    await asyncio.sleep(3600)


def failing_listen(error: OSError):
    async def listen(*args, **kwargs):
        raise error
    return listen


class FailingCloseListener:
    """Bound listener whose wait_closed() fails."""

    sockets = []

    def __init__(self, error: OSError):
        self.error = error
        self.closed = False

    def close(self):
        self.closed = True

    def is_serving(self):
        return not self.closed

    async def wait_closed(self):
        raise self.error


def listen_with(listener):
    async def listen(*args, **kwargs):
        return listener
    return listen


class TestStateMachine:

    def test_created(self, config, dispatcher):
        server = create_server(config, dispatcher)

        assert isinstance(server, HTTPServer)
        assert server.state is ServerState.CREATED
        assert not server.is_listening
        assert server.address == ("127.0.0.1", 0)

    def test_invalid_transition(self, config, dispatcher):
        server = create_server(config, dispatcher)

        with pytest.raises(RuntimeError):
            server._transition(ServerState.LISTENING)

    @pytest.mark.asyncio
    async def test_cannot_start_twice(self, config, dispatcher):
        server = create_server(config, dispatcher)
        await start_server(server)
        try:
            with pytest.raises(RuntimeError):
                await server.start()
            assert server.state is ServerState.LISTENING
        finally:
            await stop_server(server)


class TestStartup:

    @pytest.mark.asyncio
    async def test_start_success(self, config, dispatcher, exit_recorder):
        coordinator = ShutdownCoordinator(exit_func=exit_recorder)
        server = create_server(config, dispatcher, coordinator=coordinator)

        result = await start_server(server)
        try:
            assert result is server
            assert server.state is ServerState.LISTENING
            assert server.is_listening
            host, port = server.address
            assert host == "127.0.0.1"
            assert port > 0
            assert coordinator._callback == server.stop
        finally:
            await stop_server(server)

    @pytest.mark.asyncio
    async def test_startup_timeout(self, config, dispatcher):
        config.startup_timeout = 0.05
        server = HTTPServer(config, dispatcher, listen=stalled_listen)

        with pytest.raises(StartupTimeoutError) as exc_info:
            await start_server(server)

        assert exc_info.value.timeout == 0.05
        assert server.state is ServerState.STOPPED
        assert not server.is_listening

    @pytest.mark.asyncio
    async def test_timeout_does_not_register_stop(self, config, dispatcher, exit_recorder):
        config.startup_timeout = 0.05
        coordinator = ShutdownCoordinator(exit_func=exit_recorder)
        server = HTTPServer(config, dispatcher, coordinator=coordinator, listen=stalled_listen)

        with pytest.raises(StartupTimeoutError):
            await server.start()
        assert coordinator._callback is None

    @pytest.mark.asyncio
    async def test_listener_error(self, config, dispatcher, caplog):
        error = OSError(errno.EACCES, "Permission denied")
        server = HTTPServer(config, dispatcher, listen=failing_listen(error))

        with caplog.at_level(logging.ERROR, logger="helloserver"):
            with pytest.raises(OSError) as exc_info:
                await start_server(server)

        assert exc_info.value is error
        assert server.state is ServerState.STOPPED
        record = [r for r in caplog.records if r.name == "helloserver.core.server"][-1]
        assert record.error_code == "EACCES"

    @pytest.mark.asyncio
    async def test_address_in_use(self, config, dispatcher, caplog):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            config.port = blocker.getsockname()[1]
            server = create_server(config, dispatcher)

            with caplog.at_level(logging.ERROR, logger="helloserver"):
                with pytest.raises(OSError) as exc_info:
                    await start_server(server)

        assert exc_info.value.errno == errno.EADDRINUSE
        assert server.state is ServerState.STOPPED
        tagged = [r for r in caplog.records if getattr(r, "error_code", None) == "EADDRINUSE"]
        assert len(tagged) == 1
        assert "already in use" in tagged[0].getMessage()


class TestStop:

    @pytest.mark.asyncio
    async def test_stop(self, config, dispatcher):
        server = create_server(config, dispatcher)
        await start_server(server)

        await stop_server(server)

        assert server.state is ServerState.STOPPED
        assert not server.is_listening

    @pytest.mark.asyncio
    async def test_stop_none(self, caplog):
        with caplog.at_level(logging.WARNING, logger="helloserver"):
            await stop_server(None)

        assert any(r.levelno == logging.WARNING for r in caplog.records)

    @pytest.mark.asyncio
    async def test_stop_not_started(self, config, dispatcher):
        server = create_server(config, dispatcher)

        await stop_server(server)
        assert server.state is ServerState.CREATED

    @pytest.mark.asyncio
    async def test_stop_twice(self, config, dispatcher):
        server = create_server(config, dispatcher)
        await start_server(server)

        await stop_server(server)
        await stop_server(server)
        assert server.state is ServerState.STOPPED

    @pytest.mark.asyncio
    async def test_stop_via_coordinator(self, config, dispatcher, exit_recorder):
        coordinator = ShutdownCoordinator(timeout=2.0, exit_func=exit_recorder)
        server = create_server(config, dispatcher, coordinator=coordinator)
        await start_server(server)

        await coordinator.shutdown()

        assert server.state is ServerState.STOPPED
        assert exit_recorder.codes == []

    @pytest.mark.asyncio
    async def test_close_error_propagates(self, config, dispatcher):
        error = OSError(errno.EBADF, "Bad file descriptor")
        listener = FailingCloseListener(error)
        server = HTTPServer(config, dispatcher, listen=listen_with(listener))
        await start_server(server)

        with pytest.raises(OSError) as exc_info:
            await stop_server(server)

        assert exc_info.value is error
        assert listener.closed
        assert server.state is ServerState.SHUTTING_DOWN

    @pytest.mark.asyncio
    async def test_close_error_exits_1_via_coordinator(
        self, config, dispatcher, exit_recorder, caplog
    ):
        coordinator = ShutdownCoordinator(timeout=2.0, exit_func=exit_recorder)
        listener = FailingCloseListener(OSError(errno.EBADF, "Bad file descriptor"))
        server = HTTPServer(
            config, dispatcher, coordinator=coordinator, listen=listen_with(listener)
        )
        await start_server(server)

        with caplog.at_level(logging.ERROR, logger="helloserver"):
            await coordinator.shutdown()

        assert exit_recorder.codes == [1]
        assert "Error during shutdown" in caplog.text
        assert coordinator._deadline.cancelled()
