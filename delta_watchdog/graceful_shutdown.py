"""
Shutdown handling for the watchdog process.

SIGTERM / SIGINT only stop the monitor's timer. The tick in flight (if any)
finishes, start() returns, and the daemon then runs the registered cleanup
callbacks (closing HTTP clients). Nothing else happens on shutdown.
"""

import signal
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class GracefulShutdownHandler:
    """
    Turns SIGTERM / SIGINT into a stop request.

    Usage:
        handler = GracefulShutdownHandler(on_shutdown=monitor.stop)
        handler.register_cleanup(client.close)
        handler.install()

        monitor.start()      # returns once a signal arrives
        handler.run_cleanup()
    """

    def __init__(self, on_shutdown: Optional[Callable[[], None]] = None):
        """
        Args:
            on_shutdown: Called from the signal handler (must be quick)
        """
        self.on_shutdown = on_shutdown
        self.shutdown_requested = False
        self._cleanup_callbacks: list[Callable] = []

    def register_cleanup(self, callback: Callable) -> None:
        """
        Register a cleanup callback.

        Callbacks are run in reverse order of registration (LIFO).
        """
        self._cleanup_callbacks.append(callback)

    def install(self) -> None:
        """Install handlers for SIGTERM and SIGINT."""
        signal.signal(signal.SIGTERM, self._handle_signal)
        signal.signal(signal.SIGINT, self._handle_signal)
        logger.info("signal_handlers_installed")

    def _handle_signal(self, signum: int, frame) -> None:
        signal_name = signal.Signals(signum).name
        logger.info("shutdown_signal_received", signal=signal_name)

        self.shutdown_requested = True
        if self.on_shutdown is not None:
            self.on_shutdown()

    def run_cleanup(self) -> None:
        """Run cleanup callbacks. One failing callback does not stop the rest."""
        logger.info("running_cleanup_callbacks", count=len(self._cleanup_callbacks))

        for callback in reversed(self._cleanup_callbacks):
            try:
                callback()
            except Exception as e:
                logger.error("cleanup_callback_error", error=str(e))

        logger.info("graceful_shutdown_complete")

    def should_shutdown(self) -> bool:
        return self.shutdown_requested
