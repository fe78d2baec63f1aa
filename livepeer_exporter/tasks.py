"""Periodic background tasks with a stop handle."""
import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Run a callable immediately and then once every ``interval`` seconds
    on a background thread, until stopped.

    The wait between ticks is interruptible, so ``stop()`` returns promptly.
    A tick that overruns the interval is followed immediately by the next one.
    """

    def __init__(self, name: str, interval: float, func: Callable[[], None]):
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self.name = name
        self.interval = interval
        self.func = func
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread. Returns immediately."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Signal the thread to exit and wait for it."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(f"Task {self.name} did not finish in time")
            self._thread = None

    def run_once(self) -> None:
        """Run a single tick synchronously."""
        try:
            self.func()
        except Exception:
            logger.exception(f"Task {self.name} tick failed")

    def _loop(self) -> None:
        logger.debug(f"Task {self.name} started (interval {self.interval}s)")
        while not self._stop.is_set():
            tick_start = time.monotonic()
            self.run_once()
            elapsed = time.monotonic() - tick_start
            self._stop.wait(max(0.0, self.interval - elapsed))
        logger.debug(f"Task {self.name} stopped")
