"""Debounced callbacks with an injectable timer."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

TimerFactory = Callable[[float, Callable[[], None]], Any]


def thread_timer(delay: float, fn: Callable[[], None]) -> threading.Timer:
    """Start a daemon ``threading.Timer``; the default timer factory."""

    timer = threading.Timer(delay, fn)
    timer.daemon = True
    timer.start()
    return timer


class Debouncer:
    """
    Collapse bursts of :meth:`trigger` calls into one ``callback`` run.

    There is a single pending-timer slot: each trigger cancels the pending timer
    and schedules a new one ``delay`` seconds out. ``timer_factory(delay, fn)`` must
    start the timer and return an object with ``cancel()``.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        delay: float = 0.5,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self.callback = callback
        self.delay = delay
        self.timer_factory = timer_factory or thread_timer
        self._lock = threading.Lock()
        self._pending: Any = None
        self._token: Optional[object] = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def trigger(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            token = object()
            self._token = token
            self._pending = self.timer_factory(self.delay, lambda: self._fire(token))

    def cancel(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            self._pending = None
            self._token = None

    def flush(self) -> bool:
        """Run the pending callback immediately. Returns False when nothing was pending."""

        with self._lock:
            if self._pending is None:
                return False
            self._pending.cancel()
            self._pending = None
            self._token = None
        self._run()
        return True

    def _fire(self, token: object) -> None:
        with self._lock:
            # a cancelled timer that raced past cancel() must not run
            if self._pending is None or self._token is not token:
                return
            self._pending = None
            self._token = None
        self._run()

    def _run(self) -> None:
        try:
            self.callback()
        except Exception:
            logging.getLogger(__name__).exception("Debounced callback failed")


__all__ = ["Debouncer", "TimerFactory", "thread_timer"]
