"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

    http/
    ├── status_codes.py  # HTTPStatus enum + reason phrases
    ├── errors.py        # HttpError values and their taxonomy
    ├── request.py       # Request head parsing, path normalization
    ├── response.py      # Response building, security headers
    └── router.py        # Prefix → handler route table

=============================================================================
"""

from .errors import (
    ErrorKind,
    HttpError,
    bad_request_error,
    internal_server_error,
    method_not_allowed_error,
    not_found_error,
)
from .request import (
    HTTPParseError,
    HTTPRequest,
    RequestContext,
    RequestParser,
    normalize_path,
)
from .response import (
    HTTPResponse,
    ResponseBuilder,
    SECURITY_HEADERS,
    error_response,
    json_response,
    success_response,
)
from .router import Handler, Route, RouteResult, RouteTable
from .status_codes import HTTPStatus

__all__ = [
    # Errors
    "ErrorKind",
    "HttpError",
    "bad_request_error",
    "internal_server_error",
    "method_not_allowed_error",
    "not_found_error",

    # Requests
    "HTTPParseError",
    "HTTPRequest",
    "RequestContext",
    "RequestParser",
    "normalize_path",

    # Responses
    "HTTPResponse",
    "ResponseBuilder",
    "SECURITY_HEADERS",
    "error_response",
    "json_response",
    "success_response",

    # Routing
    "Handler",
    "Route",
    "RouteResult",
    "RouteTable",

    # Status codes
    "HTTPStatus",
]
