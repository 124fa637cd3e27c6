"""Debounced scheduling of document validation.

Rapid edits to a document are coalesced: scheduling a validation for a URI
replaces any validation still pending for that URI, so only the last edit
in a burst is validated. Each URI has its own timer.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 0.2


class DiagnosticsScheduler:
    """Per-URI debounce timer table.

    The callback runs on a timer thread once ``delay`` seconds have passed
    without a newer :meth:`schedule` call for the same URI. A running callback
    is never interrupted.
    """

    def __init__(
        self,
        callback: Callable[[str], None],
        delay: float = DEFAULT_DELAY_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            callback: Called with the URI when its timer fires
            delay: Debounce delay in seconds
            logger: Logger to report to; defaults to this module's logger
        """
        self._callback = callback
        self.delay = delay
        self._logger = logger or logging.getLogger(__name__)
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    def schedule(self, uri: str) -> None:
        """Schedule the callback for a URI, replacing any pending one."""
        with self._lock:
            pending = self._timers.pop(uri, None)
            if pending is not None:
                pending.cancel()
            timer = threading.Timer(self.delay, self._fire, args=(uri,))
            timer.daemon = True
            self._timers[uri] = timer
            timer.start()
        self._logger.debug(f"Scheduled validation of {uri} in {self.delay}s")

    def cancel(self, uri: str) -> bool:
        """Cancel the pending callback for a URI.

        Returns:
            True if a pending callback was cancelled
        """
        with self._lock:
            pending = self._timers.pop(uri, None)
        if pending is None:
            return False
        pending.cancel()
        self._logger.debug(f"Cancelled pending validation of {uri}")
        return True

    def cancel_all(self) -> None:
        """Cancel every pending callback."""
        with self._lock:
            pending = list(self._timers.values())
            self._timers.clear()
        for timer in pending:
            timer.cancel()

    def is_pending(self, uri: str) -> bool:
        """Check whether a callback is waiting to run for a URI."""
        with self._lock:
            return uri in self._timers

    def _fire(self, uri: str) -> None:
        with self._lock:
            # A newer schedule() may have replaced this timer already
            if self._timers.get(uri) is not threading.current_thread():
                return
            del self._timers[uri]
        try:
            self._callback(uri)
        except Exception:
            self._logger.exception(f"Scheduled validation of {uri} failed")
