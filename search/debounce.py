"""Debounced scheduling and last-search-wins sequencing."""
import logging
import threading
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Keyed cancellable timers.

    Scheduling under a key cancels whatever is still pending under that
    key, so a burst of calls runs the last action once after the quiet
    period.
    """

    def __init__(self, timer_factory: Callable[..., threading.Timer] = threading.Timer):
        """
        Args:
            timer_factory: Builds a timer from (interval_seconds, function);
                must return an object with start() and cancel()
        """
        self.timer_factory = timer_factory
        self._pending: Dict[str, threading.Timer] = {}
        self._actions: Dict[str, Callable[[], None]] = {}
        self._lock = threading.Lock()

    def schedule(self, key: str, delay_ms: int, action: Callable[[], None]) -> None:
        """Run ``action`` after ``delay_ms`` unless rescheduled or cancelled first."""
        def run():
            with self._lock:
                if self._actions.get(key) is not action:
                    return
                self._pending.pop(key, None)
                self._actions.pop(key, None)
            action()

        with self._lock:
            self._cancel_locked(key)
            timer = self.timer_factory(delay_ms / 1000.0, run)
            self._pending[key] = timer
            self._actions[key] = action
        timer.start()

    def flush(self, key: str, action: Optional[Callable[[], None]] = None) -> None:
        """
        Run immediately, dropping any pending timer for ``key``.

        Args:
            key: Timer key
            action: Action to run; defaults to the pending one
        """
        with self._lock:
            pending_action = self._actions.get(key)
            self._cancel_locked(key)
        to_run = action or pending_action
        if to_run is not None:
            to_run()

    def cancel(self, key: str) -> None:
        with self._lock:
            self._cancel_locked(key)

    def cancel_all(self) -> None:
        with self._lock:
            for key in list(self._pending):
                self._cancel_locked(key)

    def is_pending(self, key: str) -> bool:
        with self._lock:
            return key in self._pending

    def _cancel_locked(self, key: str) -> None:
        timer = self._pending.pop(key, None)
        self._actions.pop(key, None)
        if timer is not None:
            timer.cancel()


class SearchSequencer:
    """
    Orders search dispatches so only the most recent one may commit.

    Each dispatch takes a ticket; a result computed for an older ticket is
    discarded regardless of when it completes.
    """

    def __init__(self):
        self._latest = 0
        self._lock = threading.Lock()

    def next_ticket(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._latest

    def commit(self, ticket: int, apply: Callable[[], None]) -> bool:
        """
        Run ``apply`` only if ``ticket`` is still the latest.

        Returns:
            True if applied, False if the result was stale
        """
        with self._lock:
            if ticket != self._latest:
                logger.debug(f"Discarding stale search result {ticket} (latest {self._latest})")
                return False
            apply()
            return True
