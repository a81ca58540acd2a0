"""
Periodic ticker for elapsed-time accrual.

Calls a callback every interval on a daemon thread. With the event loop the
callback is `lambda: loop.post(Tick())`, so ticks are serialized with all
other race events.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTicker:
    """
    Restartable periodic timer.

    start() and stop() are idempotent.
    """

    def __init__(self, callback: Callable[[], None], interval_s: float = 0.1):
        """
        Initialize ticker.

        Args:
            callback: Called once per interval
            interval_s: Tick interval (s)
        """
        assert interval_s > 0, "interval must be positive"
        self.callback = callback
        self.interval_s = interval_s

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.is_running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name="race-ticker", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0):
        if self._thread is None:
            return
        self._stop_event.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None

    def _run(self):
        stop_event = self._stop_event
        while not stop_event.wait(self.interval_s):
            self.tick_count += 1
            try:
                self.callback()
            except Exception:
                logger.exception("Ticker callback failed")
