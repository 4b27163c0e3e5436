"""
================================================================================
COMMUNITY CHAT - PRESENCE TRACKER
================================================================================

MODULE PURPOSE
================================================================================
Tracks which members currently hold at least one live realtime connection.

    connection id ──> username (or None until the connection authenticates)

A member may be connected from several devices or tabs at once; they count
as online while at least one of their connections is bound to them. Only
the transitions matter to everyone else:

    0 -> 1 connections   => "userOnline"
    1 -> 0 connections   => "userOffline"

so authenticate() and on_disconnect() report those transitions and leave
the broadcasting to the caller.

LIMITATIONS
================================================================================
State is per process. With more than one worker each process only knows
about its own connections.

================================================================================
"""

import threading
from typing import Dict, List, Optional


class PresenceTracker:
    """In-memory map of realtime connections to usernames."""

    def __init__(self):
        self._connections: Dict[str, Optional[str]] = {}
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def on_connect(self, connection_id: str) -> None:
        """Register an anonymous connection."""
        with self._lock:
            self._connections.setdefault(connection_id, None)

    def authenticate(self, connection_id: str, username: str) -> bool:
        """
        Bind ``username`` to a connection.

        Returns:
            bool: True if this made ``username`` go from offline to online
        """
        with self._lock:
            previous = self._connections.get(connection_id)
            if previous == username:
                return False
            if previous is not None:
                self._release(previous)
            self._connections[connection_id] = username
            self._counts[username] = self._counts.get(username, 0) + 1
            return self._counts[username] == 1

    def on_disconnect(self, connection_id: str) -> Optional[str]:
        """
        Forget a connection.

        Returns:
            str | None: the username that just went offline, if any
        """
        with self._lock:
            username = self._connections.pop(connection_id, None)
            if username is None:
                return None
            return username if self._release(username) else None

    def username_for(self, connection_id: str) -> Optional[str]:
        with self._lock:
            return self._connections.get(connection_id)

    def is_online(self, username: str) -> bool:
        with self._lock:
            return self._counts.get(username, 0) > 0

    def list_online(self) -> List[str]:
        with self._lock:
            return sorted(self._counts)

    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def _release(self, username: str) -> bool:
        # Caller holds the lock. Returns True when the last connection is gone.
        remaining = self._counts.get(username, 0) - 1
        if remaining > 0:
            self._counts[username] = remaining
            return False
        self._counts.pop(username, None)
        return True
