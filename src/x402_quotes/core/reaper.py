"""
Background eviction of expired quotes.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .store import QuoteStore

__all__ = ["DEFAULT_REAPER_INTERVAL_SECONDS", "ExpiryReaper"]

DEFAULT_REAPER_INTERVAL_SECONDS = 60


class ExpiryReaper:
    """
    Periodically purge expired quotes from a :class:`QuoteStore`.

    The worker is a daemon thread; :meth:`stop` wakes it immediately instead of
    waiting out the current interval.
    """

    def __init__(
        self,
        store: QuoteStore,
        *,
        interval_seconds: float = DEFAULT_REAPER_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("Reaper interval must be greater than zero")
        self.store = store
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._shutdown_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        return self.store.evict_expired(now)

    def start(self) -> None:
        with self._lock:
            if self.is_running and not self._shutdown_event.is_set():
                return
            logging.info("Starting quote reaper (interval %ss)", self.interval_seconds)
            # One event per run: a worker outliving a timed-out stop() stays stopped.
            self._shutdown_event = threading.Event()
            self._thread = threading.Thread(
                target=self._worker,
                args=(self._shutdown_event,),
                name="quote-reaper",
                daemon=True,
            )
            self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            self._shutdown_event.set()
            thread = self._thread
            if thread is None:
                return
            thread.join(timeout)
            if thread.is_alive():
                logging.warning("Quote reaper did not stop within %ss", timeout)
                return
            self._thread = None
            logging.info("Quote reaper stopped")

    def _worker(self, shutdown_event: threading.Event) -> None:
        while not shutdown_event.wait(timeout=self.interval_seconds):
            try:
                removed = self.run_once()
            except Exception:  # noqa: BLE001
                logging.exception("Quote reaper tick failed")
                continue
            if removed:
                logging.info("Reaped %d expired quote(s)", removed)
