"""
=============================================================================
REQUEST DISPATCHER
=============================================================================

Turns (method, target) into exactly one HTTPResponse.

    target "/hello?x=1"
        │
        ▼
    normalize_path()            "/hello"   (pure, request untouched)
        │
        ▼
    RouteTable.match()  ──── no match ────► not_found_error()
        │                                          │
        ▼                                          │
    handler(method, path)                          │
        │                                          │
        ├── HTTPResponse ──────────► returned      │
        ├── HttpError    ──────────┐               │
        └── raises       ──────────┴──► ErrorHandler.handle() ──► returned

Every request is logged once (before dispatch) and counted once. Every
error response is counted once.

=============================================================================
"""

import logging
from typing import Optional

from ..http.errors import HttpError, not_found_error
from ..http.request import RequestContext, normalize_path
from ..http.response import HTTPResponse
from ..http.router import RouteTable
from .error_handler import ErrorHandler
from .metrics import RequestMetrics


logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Matches a request path to a handler and invokes it.

    Args:
        route_table: Frozen table of prefix → handler.
        error_handler: Sink for every HttpError and handler exception.
        metrics: Counters to update.
    """

    def __init__(
        self,
        route_table: RouteTable,
        error_handler: Optional[ErrorHandler] = None,
        metrics: Optional[RequestMetrics] = None,
    ):
        self.route_table = route_table
        self.error_handler = error_handler or ErrorHandler()
        self.metrics = metrics or RequestMetrics()

    def dispatch(
        self,
        method: str,
        target: str,
        context: Optional[RequestContext] = None,
    ) -> HTTPResponse:
        path = normalize_path(target)
        if context is None:
            context = RequestContext(method=method, path=path)

        logger.info(
            "Incoming request received",
            extra={"method": method, "path": path},
        )
        self.metrics.increment_requests()

        route = self.route_table.match(path)
        if route is None:
            return self.fail(not_found_error(), context)

        try:
            result = route.handler(method, path)
        except Exception as e:
            return self.fail(e, context)

        if isinstance(result, HttpError):
            return self.fail(result, context)
        return result

    def fail(self, error, context: RequestContext) -> HTTPResponse:
        """Route an error to the error handler and count it."""
        self.metrics.increment_errors()
        return self.error_handler.handle(error, context)
