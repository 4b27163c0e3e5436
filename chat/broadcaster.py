"""
Realtime event bus.

Handlers publish chat events through a Broadcaster without knowing how they
reach clients. SocketIOBroadcaster fans them out through the process'
Socket.IO server; RecordingBroadcaster keeps them in memory (tests, or a
deployment with the realtime channel switched off). A multi-instance
deployment can plug in a distributed backend behind the same interface.

Delivery is best-effort and at-most-once: failures are logged, never raised
and never retried. Clients recover through the polling endpoint.
"""

import abc
import enum
import logging
import threading
from typing import Any, List, NamedTuple, Optional

logger = logging.getLogger(__name__)


class ChatEvent(str, enum.Enum):
    NEW_MESSAGE = "newMessage"
    MESSAGE_DELETED = "messageDeleted"
    CHAT_CLEARED = "chatCleared"
    REACTION_ADDED = "reactionAdded"
    REACTION_REMOVED = "reactionRemoved"
    USER_ONLINE = "userOnline"
    USER_OFFLINE = "userOffline"
    ONLINE_USERS = "onlineUsers"


class Broadcaster(abc.ABC):
    """Base event bus: ``emit`` never raises."""

    def emit(self, event: ChatEvent, data: Any = None, *, to: Optional[str] = None, skip: Optional[str] = None) -> bool:
        event = ChatEvent(event)
        try:
            self._send(event, data, to=to, skip=skip)
        except Exception:
            logger.exception(f"Failed to broadcast {event.value}")
            return False
        return True

    @abc.abstractmethod
    def _send(self, event: ChatEvent, data: Any, *, to: Optional[str], skip: Optional[str]) -> None:
        ...


class SocketIOBroadcaster(Broadcaster):

    def __init__(self, server):
        self.server = server

    def _send(self, event, data, *, to, skip):
        args = {}
        if to is not None:
            args["to"] = to
        if skip is not None:
            args["skip_sid"] = skip
        if data is None:
            self.server.emit(event.value, **args)
        else:
            self.server.emit(event.value, data, **args)


class RecordedEvent(NamedTuple):
    event: ChatEvent
    data: Any
    to: Optional[str]
    skip: Optional[str]


class RecordingBroadcaster(Broadcaster):

    def __init__(self):
        self.events: List[RecordedEvent] = []
        self._lock = threading.Lock()

    def _send(self, event, data, *, to, skip):
        with self._lock:
            self.events.append(RecordedEvent(event, data, to, skip))

    def names(self) -> List[str]:
        with self._lock:
            return [recorded.event.value for recorded in self.events]

    def clear(self) -> None:
        with self._lock:
            self.events.clear()
