"""
=============================================================================
HANDLERS MODULE
=============================================================================

Route handlers. Each one is a plain callable of (method, path) that
returns either an HTTPResponse or an HttpError value. Handlers never
touch the socket and never raise for expected failures.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ Handler           │ Route     │ Type                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │ handle_hello      │ /hello    │ Function (stateless)                │
    │ HealthHandler     │ /health   │ Class (reads RequestMetrics)        │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .hello import HELLO_MESSAGE, handle_hello
from .health import HealthHandler, process_memory

__all__ = [
    "HELLO_MESSAGE",
    "handle_hello",
    "HealthHandler",
    "process_memory",
]
