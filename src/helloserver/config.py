"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

One dataclass holds every setting the server reads. It can be built in
code (tests do this), from the environment, or from CLI flags layered on
top of the environment.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── python -m helloserver --port 8000                          │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── PORT=8000 python -m helloserver                            │
    │                                                                     │
    │   3. Defaults (this file)                                           │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ENVIRONMENTS
=============================================================================

    development   default; hostname included in JSON logs
    production    hostname left out of JSON logs
    test          used by the test suite

An unknown environment name is not fatal when it comes from the
environment: the server warns and runs as "development". The same goes for
a PORT that is not a valid port number (falls back to 3000).

=============================================================================
"""

import logging
import os
from dataclasses import dataclass


logger = logging.getLogger(__name__)


APP_NAME = "hello-server"
APP_VERSION = "1.0.0"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_ENV = "development"
VALID_ENVS = ("development", "production", "test")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the hello server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK
    - host, port

    TIMEOUTS
    - startup_timeout, shutdown_timeout, request_timeout

    HTTP
    - max_request_size, server_name

    LOGGING / ENVIRONMENT
    - env, log_level, log_format

    =========================================================================
    """

    host: str = DEFAULT_HOST
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces (containers, production)
    """

    port: int = DEFAULT_PORT
    """
    The port number to listen on. 0 asks the OS for a free port, which
    is what the tests do.
    """

    env: str = DEFAULT_ENV
    """development, production or test."""

    log_level: str = "INFO"

    log_format: str = "text"
    """
    'text' for humans, 'json' for log aggregators (one object per line).
    """

    startup_timeout: float = 3.0
    """
    Seconds to wait for the listener to come up before giving up.
    """

    shutdown_timeout: float = 5.0
    """
    Hard deadline in seconds for a signal-triggered shutdown. When it
    expires the process exits even if connections are still draining.
    """

    request_timeout: float = 30.0
    """
    Seconds a client gets to send its request head.
    """

    max_request_size: int = 64 * 1024
    """
    Maximum request head size in bytes. Neither endpoint reads a body.
    """

    server_name: str = f"{APP_NAME}/{APP_VERSION}"
    """Value of the Server header."""

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    @property
    def is_test(self) -> bool:
        return self.env == "test"

    @classmethod
    def from_env(cls, environ=None) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HOST              Bind address (default: 127.0.0.1)
        PORT              Port (default: 3000)
        APP_ENV / ENV     development | production | test
        LOG_LEVEL         DEBUG | INFO | WARNING | ERROR | CRITICAL
        LOG_FORMAT        text | json
        SHUTDOWN_TIMEOUT  Seconds (default: 5)

        =====================================================================
        USAGE
        =====================================================================

        PORT=8000 LOG_FORMAT=json python -m helloserver

        =====================================================================
        """
        environ = os.environ if environ is None else environ

        return cls(
            host=environ.get("HOST", DEFAULT_HOST),
            port=_port_from_env(environ.get("PORT")),
            env=_env_from_env(environ.get("APP_ENV") or environ.get("ENV")),
            log_level=_log_level_from_env(environ.get("LOG_LEVEL")),
            log_format=environ.get("LOG_FORMAT", "text").lower(),
            shutdown_timeout=float(environ.get("SHUTDOWN_TIMEOUT", "5")),
        )

    def validate(self) -> None:
        """
        Validate configuration values set in code.

        Raises:
            ValueError: On the first invalid value.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.env not in VALID_ENVS:
            raise ValueError(
                f"Invalid env: {self.env!r}. Must be one of {', '.join(VALID_ENVS)}."
            )

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level!r}")

        if self.log_format not in VALID_LOG_FORMATS:
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")

        for name in ("startup_timeout", "shutdown_timeout", "request_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")

        if self.max_request_size < 1024:
            raise ValueError("max_request_size must be >= 1024")


def _port_from_env(raw):
    if raw is None or raw == "":
        return DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError:
        port = -1
    if not 0 < port < 65536:
        logger.warning(f"Invalid PORT {raw!r}, falling back to {DEFAULT_PORT}")
        return DEFAULT_PORT
    return port


def _env_from_env(raw):
    if not raw:
        return DEFAULT_ENV
    env = raw.strip().lower()
    if env not in VALID_ENVS:
        logger.warning(
            f"Invalid environment {raw!r}, falling back to {DEFAULT_ENV!r}. "
            f"Valid values: {', '.join(VALID_ENVS)}"
        )
        return DEFAULT_ENV
    return env


def _log_level_from_env(raw):
    if not raw:
        return "INFO"
    level = raw.strip().upper()
    if level not in VALID_LOG_LEVELS:
        logger.warning(f"Invalid LOG_LEVEL {raw!r}, falling back to 'INFO'")
        return "INFO"
    return level
