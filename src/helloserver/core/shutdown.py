"""
=============================================================================
SHUTDOWN COORDINATOR
=============================================================================

Turns SIGINT / SIGTERM into exactly one graceful shutdown.

    SIGTERM ──► on_signal() ──► flag already set? ──yes──► log, ignore
                                     │ no
                                     ▼
                              set flag (never reset)
                                     │
                                     ▼
                              shutdown(signum)
                                     │
        ┌────────────────────────────┤
        │                            ▼
        │  arm deadline        await callback()   (server.stop)
        │  (call_later)              │
        │       │            ┌───────┴────────┐
        │       │            ▼                ▼
        │       │         raises          returns
        │       │            │                │
        │       │     cancel deadline   cancel deadline
        │       │         exit(1)       wake wait_closed()
        │       ▼                       (app returns 0)
        │   fires first?
        │   exit(0)
        └────────────────────────────────────────────────

The coordinator only knows the callback it was given. It never touches
the listener directly.

=============================================================================
"""

import asyncio
import inspect
import logging
import signal
import sys
from typing import Callable, Iterable, List, Optional


logger = logging.getLogger(__name__)


DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _signal_name(signum) -> str:
    try:
        return signal.Signals(signum).name
    except (TypeError, ValueError):
        return str(signum)


class ShutdownCoordinator:
    """
    Owns the shutdown flag, the registered callback and the hard deadline.

    Args:
        timeout: Seconds the callback gets before the process is forced
                 out with exit code 0.
        exit_func: Called with the exit code (default: sys.exit). Tests
                   pass a recorder instead.
    """

    def __init__(self, timeout: float = 5.0, exit_func: Callable[[int], None] = sys.exit):
        self.timeout = timeout
        self._exit = exit_func
        self._callback: Optional[Callable] = None
        self._shutting_down = False
        self._closed = asyncio.Event()
        self._deadline: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._installed: List[int] = []

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def register(self, callback: Callable) -> None:
        """Register the shutdown callback. The last registration wins."""
        if not callable(callback):
            logger.error(f"Shutdown callback must be callable, got {type(callback).__name__}")
            return
        self._callback = callback

    def install(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        signals: Iterable[int] = DEFAULT_SIGNALS,
    ) -> None:
        """Subscribe on_signal() to the given signals on the event loop."""
        self._loop = loop or asyncio.get_running_loop()
        for signum in signals:
            self._loop.add_signal_handler(signum, self.on_signal, signum)
            self._installed.append(signum)
        logger.debug(
            f"Signal handlers installed for {', '.join(_signal_name(s) for s in self._installed)}"
        )

    def uninstall(self) -> None:
        if self._loop is None:
            return
        for signum in self._installed:
            self._loop.remove_signal_handler(signum)
        self._installed = []

    def on_signal(self, signum) -> None:
        name = _signal_name(signum)
        if self._shutting_down:
            logger.info(f"Received {name} but shutdown is already in progress")
            return

        self._shutting_down = True
        logger.info(f"Received {name}, starting graceful shutdown")
        self._task = asyncio.get_running_loop().create_task(self.shutdown(signum))

    async def shutdown(self, signum=None) -> None:
        """
        Run the registered callback under the hard deadline.

        Exits with 1 if the callback raises. On success, wakes
        wait_closed() and leaves the exit to the caller.
        """
        self._shutting_down = True
        loop = asyncio.get_running_loop()
        self._deadline = loop.call_later(self.timeout, self._on_deadline)

        try:
            if self._callback is None:
                logger.warning("No shutdown callback registered")
            else:
                result = self._callback()
                if inspect.isawaitable(result):
                    await result
        except Exception:
            self._deadline.cancel()
            logger.exception("Error during shutdown")
            self._exit(1)
            return

        self._deadline.cancel()
        logger.info("Shutdown complete")
        self._closed.set()

    def _on_deadline(self) -> None:
        logger.error(f"Shutdown did not finish within {self.timeout:g}s, forcing exit")
        self._exit(0)

    async def wait_closed(self) -> None:
        """Wait until a shutdown has completed."""
        await self._closed.wait()
