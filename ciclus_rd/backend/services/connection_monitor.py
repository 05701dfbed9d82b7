"""
Ciclus RD - Connection Monitor
Background reachability poll feeding the online/offline indicator
"""

import threading
from typing import Callable, Optional

from loguru import logger


class ConnectionMonitor:
    """
    Polls backend.check_connection() every interval seconds on a daemon thread
    and reports status changes to on_status. stop() ends the loop promptly.
    """

    def __init__(self, backend, on_status: Optional[Callable[[bool], None]] = None,
                 interval: Optional[float] = None):
        self.backend = backend
        self.on_status = on_status
        self.interval = interval if interval is not None else backend.settings.connection_poll_seconds
        self.online: Optional[bool] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def check(self) -> bool:
        """Check once and notify when the status changed"""
        online = self.backend.check_connection()
        if online != self.online:
            self.online = online
            logger.info(f"Backend connection: {'online' if online else 'offline'}")
            if self.on_status:
                try:
                    self.on_status(online)
                except Exception as e:
                    logger.error(f"Connection status callback failed: {e}")
        return online

    def _run(self):
        while not self._stop.is_set():
            try:
                self.check()
            except Exception as e:
                logger.error(f"Connection monitor exception: {e}")
            self._stop.wait(self.interval)

    def start(self):
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="connection-monitor", daemon=True)
        self._thread.start()
        logger.debug(f"Connection monitor started (every {self.interval}s)")

    def stop(self, timeout: float = 2.0):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.debug("Connection monitor stopped")
