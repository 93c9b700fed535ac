"""Debounced action scheduling for autosave."""

import logging
import threading
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]


def thread_timer(delay: float, callback: Callable[[], None]) -> Timer:
    """Default timer: a daemon ``threading.Timer``."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    return timer


class Debouncer:
    """Runs an action once after triggers stop arriving for ``delay`` seconds.

    Every ``trigger()`` cancels the pending timer and arms a new one, so a
    burst of triggers produces a single run. Triggering never blocks on the
    action itself.
    """

    def __init__(self, delay: float, action: Callable[[], object], timer_factory: Optional[TimerFactory] = None):
        self.delay = delay
        self._action = action
        self._timer_factory = timer_factory or thread_timer
        self._lock = threading.Lock()
        self._timer: Optional[Timer] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def trigger(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._timer = self._timer_factory(self.delay, lambda: self._fire(generation))
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A newer trigger or a cancel superseded this timer
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
        try:
            self._action()
        except Exception as e:
            logger.error(f"Debounced action failed: {type(e).__name__}: {str(e)}")
