"""Short-lived "is typing" signals, expired lazily when read."""

import threading
import time
from typing import Callable, Dict, List, Optional

DEFAULT_TYPING_TIMEOUT = 3.5  # seconds


class TypingTracker:
    def __init__(self, timeout: float = DEFAULT_TYPING_TIMEOUT, clock: Callable[[], float] = time.monotonic):
        self.timeout = timeout
        self.clock = clock
        self._last_typed: Dict[str, float] = {}
        self._lock = threading.Lock()

    def set_typing(self, username: str) -> None:
        with self._lock:
            self._last_typed[username] = self.clock()

    def clear_typing(self, username: str) -> None:
        with self._lock:
            self._last_typed.pop(username, None)

    def list_active_typers(self, excluding: Optional[str] = None) -> List[str]:
        now = self.clock()
        with self._lock:
            expired = [name for name, ts in self._last_typed.items() if now - ts >= self.timeout]
            for name in expired:
                del self._last_typed[name]
            return sorted(name for name in self._last_typed if name != excluding)
