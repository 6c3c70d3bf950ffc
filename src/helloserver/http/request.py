"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw head of an HTTP/1.x request into an HTTPRequest.

    GET /hello?name=x HTTP/1.1\r\n         ← request line
    Host: localhost:3000\r\n               ← headers
    User-Agent: curl/8.0\r\n
    \r\n                                   ← end of head

The server only ever needs the head: neither endpoint reads a body, and
every connection is closed after one response.

=============================================================================
PATH NORMALIZATION
=============================================================================

Routing works on the PATH only. The query string and fragment are
stripped by normalize_path(), a pure function that returns a new string:

    "/hello?name=x"   →  "/hello"
    "/health#top"     →  "/health"
    ""                →  "/"

The request target stays available unchanged on HTTPRequest.target.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple
from urllib.parse import urlsplit, unquote
import re


class HTTPParseError(Exception):
    """
    Raised when a request head cannot be parsed.

    Carries the status code the client should receive.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def normalize_path(target: str) -> str:
    """
    Strip query string and fragment from a request target.

    Args:
        target: Request target as sent on the request line.

    Returns:
        URL-decoded path, always starting with "/".
    """
    try:
        path = urlsplit(target).path
    except ValueError:
        # urlsplit rejects malformed authorities such as "//[x".
        path = target.split("#", 1)[0].split("?", 1)[0]
    path = unquote(path)
    if not path.startswith("/"):
        path = "/" + path
    return path


@dataclass
class HTTPRequest:
    """A parsed request head."""

    method: str
    target: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    client_address: Tuple[str, int] = ("", 0)

    @property
    def path(self) -> str:
        """Target with query and fragment removed."""
        return normalize_path(self.target)


@dataclass(frozen=True)
class RequestContext:
    """
    What the error handler needs to know about the request it answers.

    Built from an HTTPRequest when there is one; the dispatcher can also
    build it from just method and path.
    """

    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    client_address: Tuple[str, int] = ("", 0)

    @classmethod
    def from_request(cls, request: HTTPRequest) -> "RequestContext":
        return cls(
            method=request.method,
            path=request.path,
            headers=dict(request.headers),
            client_address=request.client_address,
        )


class RequestParser:
    """
    Parses a raw request head into an HTTPRequest.

        Raw head bytes
              │
              ▼
        1. Size check               too large   → 413
        2. Decode + split lines     empty       → 400
        3. Request line             malformed   → 400
                                    bad version → 400
                                    bad target  → 400
        4. Headers                  "Name: Value", names lowercased
              │
              ▼
        HTTPRequest

    Method names are NOT validated against a fixed list here: whether a
    method is acceptable is the route handler's decision, and an
    unmatched path answers 404 regardless of method.
    """

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Za-z]+) (\S+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:\s][^:]*):\s*(.*)$")
    SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")

    def __init__(self, max_request_size: int = 64 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: Tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse a request head.

        Args:
            data: Bytes up to and including the blank line; anything after
                  the first "\\r\\n\\r\\n" is ignored.
            client_address: Peer (ip, port), kept for logging.

        Raises:
            HTTPParseError: If the head is malformed or too large.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        head = data if header_end == -1 else data[:header_end]
        text = head.decode("latin-1")

        lines = text.split("\r\n")
        if not lines or not lines[0].strip():
            raise HTTPParseError("Empty request")

        method, target, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        return HTTPRequest(
            method=method,
            target=target,
            version=version,
            headers=headers,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> Tuple[str, str, str]:
        """
        METHOD SP REQUEST-TARGET SP HTTP-VERSION

            "GET /hello?x=1 HTTP/1.1"
             ─┬─ ────┬───── ───┬────
              │      │         └── version
              │      └──────────── target (query kept, see normalize_path)
              └─────────────────── method
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, target, version = match.groups()

        if version not in self.SUPPORTED_VERSIONS:
            raise HTTPParseError(f"Unsupported HTTP version: {version}")

        try:
            urlsplit(target)
        except ValueError as e:
            raise HTTPParseError(f"Invalid request target {target!r}: {e}") from None

        return method.upper(), target, version

    def _parse_headers(self, lines: list) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        for line in lines:
            if not line:
                continue
            match = self.HEADER_PATTERN.match(line)
            if not match:
                raise HTTPParseError(f"Invalid header line: {line!r}")
            name, value = match.groups()
            headers[name.strip().lower()] = value.strip()
        return headers

