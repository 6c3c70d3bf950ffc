"""
=============================================================================
ROUTE TABLE
=============================================================================

Maps a path PREFIX to a handler. A prefix matches on whole segments:

    Registered prefix: /hello

        /hello            ✓  exact
        /hello/           ✓  segment prefix
        /hello/extra      ✓  segment prefix
        /hell             ✗  partial segment
        /helloworld       ✗  partial segment
        /                 ✗

=============================================================================
LIFECYCLE
=============================================================================

    build           add("/hello", ...)      startup only
        │           add("/health", ...)
        ▼
    freeze()        table becomes read-only
        │
        ▼
    match(path)     every request, first match wins

Overlapping prefixes (e.g. "/hello" and "/hello/world") are rejected at
registration, so "first match wins" never has to break a tie.

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from .errors import HttpError
from .response import HTTPResponse


# A handler takes (method, path) and returns either a response or an error
# value. It never writes to the socket itself.
RouteResult = Union[HTTPResponse, HttpError]
Handler = Callable[[str, str], RouteResult]


@dataclass(frozen=True)
class Route:
    """One prefix → handler binding."""

    prefix: str
    handler: Handler
    name: Optional[str] = None

    def matches(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix + "/")


def _normalize_prefix(prefix: str) -> str:
    if not prefix.startswith("/"):
        raise ValueError(f"Route prefix must start with '/': {prefix!r}")
    prefix = prefix.rstrip("/")
    if not prefix:
        raise ValueError("Route prefix '/' would match every path")
    return prefix


class RouteTable:
    """
    Ordered, freezable prefix → handler table.

    Usage:
        table = RouteTable()
        table.add("/hello", handle_hello)
        table.add("/health", health.handle)
        table.freeze()

        route = table.match("/hello/extra")   # → Route(prefix="/hello")
    """

    def __init__(self):
        self._routes: List[Route] = []
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add(self, prefix: str, handler: Handler, name: Optional[str] = None) -> Route:
        """
        Register a handler under a path prefix.

        Raises:
            RuntimeError: The table has been frozen.
            ValueError: The prefix is invalid or overlaps an existing one.
        """
        if self._frozen:
            raise RuntimeError("Route table is frozen; routes are fixed at startup")

        prefix = _normalize_prefix(prefix)
        for existing in self._routes:
            if existing.matches(prefix) or Route(prefix, handler).matches(existing.prefix):
                raise ValueError(
                    f"Route prefix {prefix!r} overlaps {existing.prefix!r}"
                )

        route = Route(prefix=prefix, handler=handler, name=name)
        self._routes.append(route)
        return route

    def freeze(self) -> "RouteTable":
        self._frozen = True
        return self

    def match(self, path: str) -> Optional[Route]:
        """First route whose prefix matches the path, or None."""
        for route in self._routes:
            if route.matches(path):
                return route
        return None

    def routes(self) -> List[Route]:
        """Registered routes in registration order (a copy)."""
        return list(self._routes)

    def __len__(self) -> int:
        return len(self._routes)
