"""
=============================================================================
LOGGING SETUP
=============================================================================

Every module logs through `logging.getLogger(__name__)`, so all records
land under the "helloserver" logger. Structured fields are passed with
`extra=`:

    logger.info("Incoming request received",
                extra={"method": "GET", "path": "/hello"})

configure_logging() puts ONE stream handler on the "helloserver" logger
and renders those fields in one of two formats:

    text:
    2026-10-19 12:00:00 [INFO] helloserver.core.dispatcher: Incoming request received method=GET path=/hello

    json:
    {"timestamp": "...", "level": "INFO", "logger": "helloserver.core.dispatcher",
     "message": "Incoming request received", "pid": 4242, "hostname": "web-1",
     "method": "GET", "path": "/hello"}

In production the hostname is left out of JSON records.

=============================================================================
"""

import json
import logging
import os
import socket
import sys
from datetime import datetime, timezone
from typing import Any, Dict


ROOT_LOGGER_NAME = "helloserver"
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord has. Anything else on a record came in
# through `extra=`.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord(
    "", logging.INFO, "", 0, "", None, None,
))) | {"message", "asctime", "taskName"}


def structured_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """The `extra=` fields attached to a record, in insertion order."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class TextFormatter(logging.Formatter):
    """Classic one-line format with key=value pairs appended."""

    def __init__(self):
        super().__init__(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = structured_fields(record)
        if not fields:
            return line

        pairs = " ".join(f"{key}={value}" for key, value in fields.items())
        # Keep the traceback (if any) below the pairs.
        first, sep, rest = line.partition("\n")
        return f"{first} {pairs}{sep}{rest}"


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def __init__(self, include_hostname: bool = True):
        super().__init__()
        self.include_hostname = include_hostname
        self._hostname = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pid": record.process if record.process is not None else os.getpid(),
        }
        if self.include_hostname:
            entry["hostname"] = self._hostname

        entry.update(structured_fields(record))

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_logging(
    level: str = "INFO",
    log_format: str = "text",
    production: bool = False,
    stream=None,
) -> logging.Logger:
    """
    Configure the "helloserver" logger.

    Safe to call more than once: the handler installed by a previous call
    is replaced, never stacked.

    Args:
        level: Level name (DEBUG, INFO, ...).
        log_format: "text" or "json".
        production: Leave the hostname out of JSON records.
        stream: Output stream (default: sys.stderr).

    Returns:
        The configured "helloserver" logger.
    """
    app_logger = logging.getLogger(ROOT_LOGGER_NAME)
    app_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(app_logger.handlers):
        if getattr(handler, "_helloserver_handler", False):
            app_logger.removeHandler(handler)
            handler.close()

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    if log_format == "json":
        handler.setFormatter(JSONFormatter(include_hostname=not production))
    else:
        handler.setFormatter(TextFormatter())
    handler._helloserver_handler = True

    app_logger.addHandler(handler)
    return app_logger
