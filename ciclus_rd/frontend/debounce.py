"""
Ciclus RD - Debounced calls
A single cancellable pending timer: each call() restarts the idle window and
only the last scheduled call fires.
"""

import threading
from typing import Callable, Optional


class Debouncer:
    def __init__(self, delay_ms: int, timer_factory=threading.Timer):
        self.delay = delay_ms / 1000.0
        self._timer_factory = timer_factory
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def call(self, func: Callable, *args, **kwargs):
        """Schedule func after the idle window, replacing anything still pending"""
        def fire():
            with self._lock:
                if self._timer is not timer:
                    return
                self._timer = None
            func(*args, **kwargs)

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = self._timer_factory(self.delay, fire)
            timer.daemon = True
            self._timer = timer
        timer.start()

    def cancel(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
