"""
Handler for /hello.

    GET  /hello         → 200 text/plain "Hello world"
    GET  /hello/extra   → 200 (prefix match, same handler)
    POST /hello         → HttpError(405)
"""

from ..http.errors import method_not_allowed_error
from ..http.response import success_response
from ..http.router import RouteResult


HELLO_MESSAGE = "Hello world"


def handle_hello(method: str, path: str) -> RouteResult:
    if method != "GET":
        return method_not_allowed_error()
    return success_response(HELLO_MESSAGE)
