"""
Unit tests for the error handler: one response and one log record per error.
"""

import logging

import pytest

from helloserver.core.error_handler import ErrorHandler
from helloserver.http.errors import (
    HttpError,
    bad_request_error,
    method_not_allowed_error,
    not_found_error,
)
from helloserver.http.request import RequestContext
from helloserver.http.response import SECURITY_HEADERS


LOGGER = "helloserver.core.error_handler"


@pytest.fixture
def handler() -> ErrorHandler:
    return ErrorHandler()


@pytest.fixture
def context() -> RequestContext:
    return RequestContext(method="POST", path="/hello", client_address=("10.0.0.7", 4321))


def records_from(caplog):
    return [r for r in caplog.records if r.name == LOGGER]


class TestErrorResponses:

    def test_http_error_used_as_is(self, handler, context):
        response = handler.handle(method_not_allowed_error(), context)

        assert response.status == 405
        assert response.text == "Method Not Allowed"
        assert response.headers["Content-Type"] == "text/plain"

    def test_custom_status_and_message(self, handler):
        response = handler.handle(HttpError(503, "Draining"))
        assert response.status == 503
        assert response.text == "Draining"

    def test_exception_becomes_500_with_its_message(self, handler, context):
        response = handler.handle(ValueError("boom"), context)

        assert response.status == 500
        assert response.text == "boom"

    def test_exception_without_message_uses_default(self, handler, context):
        response = handler.handle(RuntimeError(), context)

        assert response.status == 500
        assert response.text == "Something went wrong"

    @pytest.mark.parametrize("error", [
        not_found_error(),
        method_not_allowed_error(),
        bad_request_error(),
        KeyError("x"),
    ])
    def test_security_headers_always_present(self, handler, error):
        response = handler.handle(error)
        for name, value in SECURITY_HEADERS.items():
            assert response.headers[name] == value


class TestErrorLogging:

    def test_404_logged_at_info(self, handler, context, caplog):
        with caplog.at_level(logging.DEBUG, logger="helloserver"):
            handler.handle(not_found_error(), context)

        records = records_from(caplog)
        assert len(records) == 1
        assert records[0].levelno == logging.INFO
        assert records[0].status_code == 404
        assert records[0].path == "/hello"

    def test_405_logged_at_warning(self, handler, context, caplog):
        with caplog.at_level(logging.DEBUG, logger="helloserver"):
            handler.handle(method_not_allowed_error(), context)

        records = records_from(caplog)
        assert len(records) == 1
        assert records[0].levelno == logging.WARNING
        assert records[0].method == "POST"
        assert records[0].client_ip == "10.0.0.7"

    def test_bad_request_kind_logged_at_warning(self, handler, caplog):
        with caplog.at_level(logging.DEBUG, logger="helloserver"):
            handler.handle(bad_request_error())

        assert records_from(caplog)[0].levelno == logging.WARNING

    def test_unexpected_error_logged_with_traceback(self, handler, context, caplog):
        try:
            raise ValueError("boom")
        except ValueError as e:
            error = e

        with caplog.at_level(logging.DEBUG, logger="helloserver"):
            handler.handle(error, context)

        records = records_from(caplog)
        assert len(records) == 1
        assert records[0].levelno == logging.ERROR
        assert records[0].exc_info is not None
        assert records[0].exc_info[1] is error

    def test_500_value_logged_at_error_without_traceback(self, handler, caplog):
        with caplog.at_level(logging.DEBUG, logger="helloserver"):
            handler.handle(HttpError(500, "broken"))

        record = records_from(caplog)[0]
        assert record.levelno == logging.ERROR
        assert record.exc_info is None

    def test_missing_context(self, handler, caplog):
        with caplog.at_level(logging.DEBUG, logger="helloserver"):
            handler.handle(not_found_error())

        record = records_from(caplog)[0]
        assert record.method == "-"
        assert record.path == "-"
