"""
=============================================================================
HTTP RESPONSE FORMATTER
=============================================================================

Builds HTTP/1.1 responses and serializes them for the socket.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.1 200 OK\r\n                          ← status line         │
    │  X-Content-Type-Options: nosniff\r\n          ┐                     │
    │  X-Frame-Options: DENY\r\n                    │ security headers    │
    │  Content-Security-Policy: default-src 'none'  │ (on EVERY response) │
    │  Cache-Control: no-store\r\n                  ┘                     │
    │  Content-Type: text/plain\r\n                                       │
    │  Content-Length: 11\r\n                       ┐                     │
    │  Date: Mon, 19 Oct 2026 12:00:00 GMT\r\n      │ added by to_bytes() │
    │  Server: hello-server/1.0.0\r\n               ┘                     │
    │  Connection: close\r\n                                              │
    │  \r\n                                         ← separator           │
    │  Hello world                                  ← body                │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SECURITY HEADERS
=============================================================================

    X-Content-Type-Options: nosniff
        Browser must trust Content-Type, never sniff the body.

    X-Frame-Options: DENY
        Response may not be rendered inside a frame (clickjacking).

    Content-Security-Policy: default-src 'none'
        Nothing may be loaded on behalf of this response.

    Cache-Control: no-store
        Nothing may be cached. A cached /health would lie.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Union
import json

from .status_codes import HTTPStatus, reason_phrase


DEFAULT_SERVER_NAME = "hello-server/1.0.0"

TEXT_PLAIN = "text/plain"
APPLICATION_JSON = "application/json"

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Content-Security-Policy": "default-src 'none'",
    "Cache-Control": "no-store",
}


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

    Use ResponseBuilder or the formatter functions at the bottom of this
    module rather than building one by hand; they apply the security
    headers for you.
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 405 Method Not Allowed"."""
        return f"{self.version} {int(self.status)} {reason_phrase(self.status)}"

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 (handy in tests and logs)."""
        return self.body.decode("utf-8", errors="replace")

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize to bytes for writer.write().

        Content-Length, Date and Server are filled in when the handler did
        not set them. The stored headers are left untouched.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))
        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .security_headers()
            .text("Hello world")
            .build())

    Every method except build() returns self.
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: int) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def security_headers(self) -> "ResponseBuilder":
        """Apply the four fixed security headers."""
        return self.headers(SECURITY_HEADERS)

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._body = body
        return self

    def text(self, text: str, content_type: str = TEXT_PLAIN) -> "ResponseBuilder":
        """Plain text body."""
        return self.content_type(content_type).body(text)

    def json(self, data: Any) -> "ResponseBuilder":
        """
        JSON body with compact separators: {"a":1} rather than {"a": 1}.
        """
        payload = json.dumps(data, separators=(",", ":"))
        return self.content_type(APPLICATION_JSON).body(payload)

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Example: Mon, 19 Oct 2026 12:00:00 GMT

    Always GMT. Weekday and month names are fixed English tokens, so we
    do not go through strftime (which is locale dependent).
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# FORMATTERS
# =============================================================================
#
# One-liners used by handlers and the error handler. All of them apply the
# security headers, so no code path can produce a response without them.
#
#     return success_response("Hello world")
#     return json_response({"status": "ok"})
#     return error_response(404, "Not Found")
#
# =============================================================================

def success_response(
    message: str,
    status: int = HTTPStatus.OK,
    content_type: str = TEXT_PLAIN,
) -> HTTPResponse:
    """Text response, 200 unless told otherwise."""
    return (ResponseBuilder()
        .status(status)
        .security_headers()
        .text(message, content_type)
        .build())


def json_response(data: Any, status: int = HTTPStatus.OK) -> HTTPResponse:
    """JSON response, 200 unless told otherwise."""
    return (ResponseBuilder()
        .status(status)
        .security_headers()
        .json(data)
        .build())


def error_response(status: int, message: str) -> HTTPResponse:
    """
    Error response: text/plain body equal to the message.

    Used by the ErrorHandler for every HttpError.
    """
    return (ResponseBuilder()
        .status(status)
        .security_headers()
        .text(message)
        .build())

