"""
=============================================================================
HTTP ERROR VALUES
=============================================================================

Request-processing failures are VALUES, not exceptions. A route handler
that rejects a method returns an HttpError; the dispatcher returns one for
an unmatched path. Both end up at the ErrorHandler, which turns the value
into exactly one response.

    handler(method, path)
        │
        ├──► HTTPResponse        success path
        │
        └──► HttpError           error path
                 │
                 ▼
            ErrorHandler.handle()  ──►  HTTPResponse (text/plain)

=============================================================================
TAXONOMY
=============================================================================

    ┌────────────────────┬────────┬───────────────┬──────────────────────┐
    │ Kind               │ Status │ Log level     │ Meaning              │
    ├────────────────────┼────────┼───────────────┼──────────────────────┤
    │ NOT_FOUND          │ 404    │ INFO          │ expected             │
    │ METHOD_NOT_ALLOWED │ 405    │ WARNING       │ expected             │
    │ BAD_REQUEST        │ 4xx    │ WARNING       │ unreadable request   │
    │ INTERNAL           │ 500    │ ERROR + trace │ unexpected           │
    └────────────────────┴────────┴───────────────┴──────────────────────┘

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .status_codes import HTTPStatus, reason_phrase


# Standard messages. These are also the response bodies.
NOT_FOUND_MESSAGE = "Not Found"
METHOD_NOT_ALLOWED_MESSAGE = "Method Not Allowed"
INTERNAL_SERVER_ERROR_MESSAGE = "Internal Server Error"
DEFAULT_ERROR_MESSAGE = "Something went wrong"


class ErrorKind(Enum):
    """Category tag carried by every HttpError."""
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    BAD_REQUEST = "bad_request"
    INTERNAL = "internal"


@dataclass(frozen=True)
class HttpError:
    """
    A request-processing failure with the status and message to send.

    Frozen: created once where the failure is detected, consumed once by
    the ErrorHandler, never mutated in between.
    """

    status_code: int
    message: str
    kind: ErrorKind = ErrorKind.INTERNAL

    def __post_init__(self):
        if not 100 <= self.status_code <= 599:
            raise ValueError(
                f"Invalid status code: {self.status_code}. Must be 100-599."
            )


def not_found_error(message: Optional[str] = None) -> HttpError:
    """404 for a path no route matches."""
    return HttpError(
        HTTPStatus.NOT_FOUND,
        message or NOT_FOUND_MESSAGE,
        ErrorKind.NOT_FOUND,
    )


def method_not_allowed_error(message: Optional[str] = None) -> HttpError:
    """405 for a matched route called with a method it does not accept."""
    return HttpError(
        HTTPStatus.METHOD_NOT_ALLOWED,
        message or METHOD_NOT_ALLOWED_MESSAGE,
        ErrorKind.METHOD_NOT_ALLOWED,
    )


def bad_request_error(
    message: Optional[str] = None,
    status_code: int = HTTPStatus.BAD_REQUEST,
) -> HttpError:
    """
    4xx for a request the server could not read: 400 for an unparseable
    head, 408 for a head that arrived too slowly, 413 for one that is too
    large. The message defaults to the status reason phrase.
    """
    return HttpError(
        status_code,
        message or reason_phrase(status_code),
        ErrorKind.BAD_REQUEST,
    )


def internal_server_error(message: Optional[str] = None) -> HttpError:
    """500 for anything unexpected."""
    return HttpError(
        HTTPStatus.INTERNAL_SERVER_ERROR,
        message or INTERNAL_SERVER_ERROR_MESSAGE,
        ErrorKind.INTERNAL,
    )
