"""
=============================================================================
HELLO SERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (127.0.0.1:3000)
    python -m helloserver

    # Custom port, all interfaces (containers)
    python -m helloserver --host 0.0.0.0 --port 8000

    # JSON logs for an aggregator
    python -m helloserver --log-format json --env production

    # Same thing through the environment
    HOST=0.0.0.0 PORT=8000 LOG_FORMAT=json APP_ENV=production python -m helloserver

CLI flags override environment variables, which override defaults.

=============================================================================
EXIT CODES
=============================================================================

    0   clean shutdown (or the shutdown deadline expired)
    1   invalid configuration, startup failure, or failed shutdown

=============================================================================
"""

import argparse
import asyncio
import dataclasses
import sys

from .app import run
from .config import APP_NAME, APP_VERSION, VALID_ENVS, VALID_LOG_FORMATS, ServerConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Minimal HTTP server with /hello and /health endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m helloserver                         # Run with defaults
  python -m helloserver --port 8000             # Custom port
  python -m helloserver --host 0.0.0.0          # Listen on all interfaces
  python -m helloserver --log-format json       # Structured logs
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: $HOST or 127.0.0.1)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: $PORT or 3000)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # RUNTIME ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--env",
        choices=VALID_ENVS,
        default=None,
        help="Runtime environment (default: $APP_ENV or development)"
    )

    parser.add_argument(
        "--shutdown-timeout",
        type=float,
        default=None,
        help="Seconds to wait for a graceful shutdown (default: 5)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: $LOG_LEVEL or INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=VALID_LOG_FORMATS,
        default=None,
        help="Log output format (default: $LOG_FORMAT or text)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"{APP_NAME} {APP_VERSION}"
    )

    return parser


def config_from_args(args: argparse.Namespace, environ=None) -> ServerConfig:
    """Environment config with any CLI flags that were given on top."""
    config = ServerConfig.from_env(environ)

    overrides = {
        "host": args.host,
        "port": args.port,
        "env": args.env,
        "shutdown_timeout": args.shutdown_timeout,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return dataclasses.replace(config, **overrides)


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    try:
        config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(asyncio.run(run(config)))


if __name__ == "__main__":
    main()
