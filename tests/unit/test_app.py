"""
Unit tests for application assembly, run() and the CLI entry point.
"""

import asyncio
import logging
import signal
import socket

import pytest

import helloserver.app as app_module
from helloserver import __main__ as cli
from helloserver.app import build_route_table, create_app, install_exception_handler, run
from helloserver.core.metrics import RequestMetrics
from helloserver.core.server import ServerState
from helloserver.handlers.health import HealthHandler


@pytest.fixture(autouse=True)
def restore_logger():
    app_logger = logging.getLogger("helloserver")
    handlers, level = list(app_logger.handlers), app_logger.level
    yield
    for handler in list(app_logger.handlers):
        if handler not in handlers:
            app_logger.removeHandler(handler)
    app_logger.setLevel(level)


@pytest.fixture
def captured_apps(monkeypatch):
    """Record every Application that run() builds."""
    apps = []

    def capturing_create_app(config):
        application = create_app(config)
        apps.append(application)
        return application

    monkeypatch.setattr(app_module, "create_app", capturing_create_app)
    return apps


class TestAssembly:

    def test_build_route_table(self):
        table = build_route_table(HealthHandler(RequestMetrics()))

        assert table.frozen
        assert [(r.prefix, r.name) for r in table.routes()] == [
            ("/hello", "hello"),
            ("/health", "health"),
        ]

    def test_create_app_wiring(self, config):
        application = create_app(config)

        assert application.config is config
        assert application.dispatcher.metrics is application.metrics
        assert application.dispatcher.route_table is application.routes
        assert application.server.coordinator is application.coordinator
        assert application.coordinator.timeout == config.shutdown_timeout
        assert application.server.state is ServerState.CREATED

    def test_apps_do_not_share_metrics(self, config):
        first, second = create_app(config), create_app(config)
        first.dispatcher.dispatch("GET", "/hello")

        assert second.metrics.request_count == 0


class TestRun:

    @pytest.mark.asyncio
    async def test_startup_failure_returns_1(self, config, captured_apps):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            config.port = blocker.getsockname()[1]

            assert await run(config) == 1

        assert captured_apps[0].coordinator._installed == []

    @pytest.mark.asyncio
    async def test_signal_shutdown_returns_0(self, config, captured_apps):
        task = asyncio.ensure_future(run(config))

        for _ in range(100):
            if captured_apps and captured_apps[0].server.is_listening:
                break
            await asyncio.sleep(0.01)
        application = captured_apps[0]
        assert application.server.is_listening

        signal.raise_signal(signal.SIGTERM)
        code = await asyncio.wait_for(task, timeout=2.0)

        assert code == 0
        assert application.server.state is ServerState.STOPPED
        assert application.coordinator.shutting_down


class TestLoopExceptionHandler:

    @pytest.mark.asyncio
    async def test_unhandled_exception_logs_and_exits_1(self, exit_recorder, caplog):
        loop = asyncio.get_running_loop()
        previous = install_exception_handler(loop, exit_func=exit_recorder)
        error = ValueError("boom")
        try:
            with caplog.at_level(logging.ERROR, logger="helloserver"):
                loop.call_exception_handler({
                    "message": "Task exception was never retrieved",
                    "exception": error,
                })
        finally:
            loop.set_exception_handler(previous)

        assert exit_recorder.codes == [1]
        records = [r for r in caplog.records if r.name == "helloserver.app"]
        assert len(records) == 1
        assert records[0].levelno == logging.ERROR
        assert records[0].getMessage() == "Unhandled exception: Task exception was never retrieved"
        assert records[0].exc_info[1] is error
        assert records[0].error == "ValueError('boom')"

    @pytest.mark.asyncio
    async def test_context_without_exception(self, exit_recorder, caplog):
        loop = asyncio.get_running_loop()
        previous = install_exception_handler(loop, exit_func=exit_recorder)
        try:
            with caplog.at_level(logging.ERROR, logger="helloserver"):
                loop.call_exception_handler({"message": "callback failed"})
        finally:
            loop.set_exception_handler(previous)

        assert exit_recorder.codes == [1]
        assert "Unhandled exception: callback failed" in caplog.text

    @pytest.mark.asyncio
    async def test_run_restores_previous_handler(self, config, captured_apps):
        loop = asyncio.get_running_loop()
        before = loop.get_exception_handler()
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            config.port = blocker.getsockname()[1]

            assert await run(config) == 1

        assert loop.get_exception_handler() is before


class TestMain:

    def test_invalid_config_exits_1(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--port", "70000"])

        assert exc_info.value.code == 1
        assert "Invalid port" in capsys.readouterr().err
