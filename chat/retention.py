"""
Retention sweeper.

Discards chat messages older than the retention window on a fixed interval.
Stores also purge lazily whenever the full list is read, so the sweeper only
bounds how long an unread chat can hold on to expired messages. Clients are
not told about expired messages.
"""

import logging
import threading
from typing import Optional

from django.db import close_old_connections

from .errors import PersistenceError
from .store import MessageStore

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 30.0  # seconds


class RetentionSweeper:

    def __init__(self, store: MessageStore, interval: float = DEFAULT_SWEEP_INTERVAL):
        self.store = store
        self.interval = max(1.0, float(interval))
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        try:
            removed = self.store.purge_expired()
        except PersistenceError:
            # already logged by the store; try again next tick
            return 0
        if removed:
            logger.info(f"Retention sweep removed {removed} message(s)")
        return removed

    def start(self) -> None:
        if self.running:
            logger.warning("Retention sweeper already running; ignoring duplicate start")
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="chat-retention-sweeper", daemon=True)
        self._thread.start()
        logger.info(f"Retention sweeper started (every {self.interval:.0f}s, window {self.store.retention})")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        if not self._thread:
            return
        self._stop.set()
        self._thread.join(timeout)
        self._thread = None
        logger.info("Retention sweeper stopped")

    def _run(self) -> None:
        while True:
            self.run_once()
            # the sweeper thread owns its own DB connection
            close_old_connections()
            if self._stop.wait(self.interval):
                break
