"""
=============================================================================
ERROR HANDLER
=============================================================================

The terminal sink for every request-processing failure. Whatever goes in
(an HttpError value or an unexpected exception), exactly one response
comes out and exactly one log record is written.

    ┌──────────────────────────┐
    │ HttpError(404, ...)      │──┐
    │ HttpError(405, ...)      │──┤
    │ HttpError(400, ...)      │──┼──► handle() ──► HTTPResponse
    │ ValueError("boom")       │──┘        │         status + security
    └──────────────────────────┘           │         headers + text/plain
                                           ▼
                                      log record
                                      404 → INFO
                                      405 → WARNING
                                      400 → WARNING (any unreadable request, 413 too)
                                      *   → ERROR (+ traceback)

=============================================================================
"""

import logging
from typing import Optional, Union

from ..http.errors import (
    DEFAULT_ERROR_MESSAGE,
    ErrorKind,
    HttpError,
    internal_server_error,
)
from ..http.request import RequestContext
from ..http.response import HTTPResponse, error_response
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class ErrorHandler:
    """
    Maps an error to a formatted response and a log record.

    The logging module reports its own handler failures instead of
    raising, so handle() always returns a response.
    """

    def handle(
        self,
        error: Union[HttpError, BaseException],
        context: Optional[RequestContext] = None,
    ) -> HTTPResponse:
        http_error = self.to_http_error(error)
        self._log(http_error, error, context)
        return error_response(http_error.status_code, http_error.message)

    @staticmethod
    def to_http_error(error: Union[HttpError, BaseException]) -> HttpError:
        """
        HttpError values pass through unchanged; anything else becomes a
        500 carrying the exception's message (or the default message when
        it has none).
        """
        if isinstance(error, HttpError):
            return error
        return internal_server_error(str(error) or DEFAULT_ERROR_MESSAGE)

    def _log(
        self,
        http_error: HttpError,
        original: Union[HttpError, BaseException],
        context: Optional[RequestContext],
    ) -> None:
        method = context.method if context else "-"
        path = context.path if context else "-"
        fields = {
            "status_code": int(http_error.status_code),
            "error_kind": http_error.kind.value,
            "error_message": http_error.message,
            "method": method,
            "path": path,
        }
        if context and context.client_address[0]:
            fields["client_ip"] = context.client_address[0]

        if http_error.status_code == HTTPStatus.NOT_FOUND:
            logger.info(f"404 Not Found: {method} {path}", extra=fields)
        elif (http_error.status_code == HTTPStatus.METHOD_NOT_ALLOWED
              or http_error.kind is ErrorKind.BAD_REQUEST):
            logger.warning(
                f"{int(http_error.status_code)} {http_error.message}: {method} {path}",
                extra=fields,
            )
        else:
            exc_info = original if isinstance(original, BaseException) else None
            logger.error(
                f"Server Error: {http_error.message}",
                extra=fields,
                exc_info=exc_info,
            )
