"""
Chat service.

One ChatService per process owns the chat's state: the message store, the
presence and typing trackers, the broadcaster, the retention sweeper and the
Socket.IO server. REST views and socket handlers both go through it, and it
broadcasts each change only after the store has accepted it.
"""

import logging
from typing import Dict, List, Optional

import socketio
from django.apps import apps
from django.conf import settings

from .auth import Identity
from .broadcaster import Broadcaster, ChatEvent, RecordingBroadcaster, SocketIOBroadcaster
from .errors import AuthenticationError
from .presence import PresenceTracker
from .retention import DEFAULT_SWEEP_INTERVAL, RetentionSweeper
from .sockets import ChatNamespace
from .store import Message, MessageStore, build_message_store
from .typing_indicators import TypingTracker

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


def _require(identity: Optional[Identity]) -> Identity:
    if identity is None or not identity.username:
        raise AuthenticationError("Authentication required")
    return identity


class ChatService:

    def __init__(
        self,
        store: MessageStore,
        broadcaster: Optional[Broadcaster] = None,
        presence: Optional[PresenceTracker] = None,
        typing: Optional[TypingTracker] = None,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.store = store
        self.broadcaster = broadcaster or RecordingBroadcaster()
        self.presence = presence or PresenceTracker()
        self.typing = typing or TypingTracker()
        self.sweeper = RetentionSweeper(store, sweep_interval)
        self.history_limit = history_limit
        self.sio: Optional[socketio.Server] = None

    @classmethod
    def from_settings(cls) -> "ChatService":
        sio = socketio.Server(
            async_mode="threading",
            cors_allowed_origins=settings.CHAT_SOCKETIO_CORS_ORIGINS,
            ping_interval=25,
            ping_timeout=60,
        )
        service = cls(
            store=build_message_store(),
            broadcaster=SocketIOBroadcaster(sio),
            typing=TypingTracker(timeout=settings.CHAT_TYPING_TIMEOUT_SECONDS),
            sweep_interval=settings.CHAT_SWEEP_INTERVAL_SECONDS,
            history_limit=settings.CHAT_HISTORY_LIMIT,
        )
        service.attach(sio)
        return service

    def attach(self, sio: socketio.Server) -> None:
        """Serve the realtime channel of this service on ``sio``."""
        self.sio = sio
        sio.register_namespace(ChatNamespace(self))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        logger.info(f"Chat service starting ({type(self.store).__name__})")
        self.sweeper.start()

    def stop(self) -> None:
        self.sweeper.stop()

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def messages(self) -> List[dict]:
        return [m.to_dict() for m in self.store.list_recent(self.history_limit)]

    def messages_since(self, timestamp) -> List[dict]:
        return [m.to_dict() for m in self.store.list_since(timestamp)]

    def send_message(self, identity: Optional[Identity], body, reply_to: Optional[str] = None) -> Message:
        identity = _require(identity)
        message = self.store.append(identity.username, identity.role, body, reply_to=reply_to or None)
        logger.info(f"Chat message {message.id} from {identity.username}")
        self.broadcaster.emit(ChatEvent.NEW_MESSAGE, message.to_dict())
        return message

    def delete_message(self, identity: Optional[Identity], message_id: str) -> Message:
        identity = _require(identity)
        message = self.store.delete_by_id(message_id, identity.username, identity.role)
        logger.info(f"Chat message {message.id} deleted by {identity.username}")
        self.broadcaster.emit(ChatEvent.MESSAGE_DELETED, message.id)
        return message

    def clear_messages(self, identity: Optional[Identity]) -> int:
        identity = _require(identity)
        removed = self.store.clear_all(identity.role)
        logger.warning(f"Chat cleared by {identity.username} ({identity.role}), {removed} message(s) removed")
        self.broadcaster.emit(ChatEvent.CHAT_CLEARED)
        return removed

    def toggle_reaction(self, identity: Optional[Identity], message_id: str, emoji) -> Dict[str, List[str]]:
        identity = _require(identity)
        reactions, added = self.store.toggle_reaction(message_id, identity.username, emoji)
        event = ChatEvent.REACTION_ADDED if added else ChatEvent.REACTION_REMOVED
        self.broadcaster.emit(event, {"messageId": str(message_id), "emoji": emoji, "username": identity.username})
        return reactions

    def relay_deletion(self, message_id, sender: Optional[str] = None) -> bool:
        """
        Pass a client's "I deleted this" notice on to everyone else.

        Only relayed once the message is really gone from the store.
        """
        if not message_id or self.store.get(str(message_id)) is not None:
            return False
        self.broadcaster.emit(ChatEvent.MESSAGE_DELETED, str(message_id), skip=sender)
        return True

    # ------------------------------------------------------------------
    # Typing & presence
    # ------------------------------------------------------------------

    def set_typing(self, identity: Optional[Identity], is_typing: bool) -> None:
        identity = _require(identity)
        if is_typing:
            self.typing.set_typing(identity.username)
        else:
            self.typing.clear_typing(identity.username)

    def typing_users(self, identity: Optional[Identity]) -> Dict[str, bool]:
        excluding = identity.username if identity else None
        return {name: True for name in self.typing.list_active_typers(excluding=excluding)}

    def online_users(self) -> List[str]:
        return self.presence.list_online()


def get_chat_service() -> ChatService:
    return apps.get_app_config("chat").service
