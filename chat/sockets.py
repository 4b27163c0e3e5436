"""
Socket.IO handlers for the chat's realtime channel.

Clients may connect anonymously (they only receive broadcasts) or hand over
their bearer token in the connection's ``auth`` payload, which is required
to send messages over the socket. Presence is bound with the ``authenticate``
event, once per connection.
"""

import logging
import threading
from typing import Dict, Optional

import socketio
from socketio.exceptions import ConnectionRefusedError

from .auth import Identity, decode_token
from .broadcaster import ChatEvent
from .errors import AuthenticationError, ChatError

logger = logging.getLogger(__name__)


def _token_from_auth(auth) -> Optional[str]:
    if isinstance(auth, str):
        token = auth
    elif isinstance(auth, dict):
        token = auth.get("token") or auth.get("Authorization")
    else:
        return None
    if not token:
        return None
    if token.lower().startswith("bearer "):
        token = token[7:]
    return token.strip() or None


def _username_from(data) -> Optional[str]:
    if isinstance(data, dict):
        data = data.get("username")
    if isinstance(data, str) and data.strip():
        return data.strip()
    return None


class ChatNamespace(socketio.Namespace):

    def __init__(self, service, namespace: str = "/"):
        super().__init__(namespace)
        self.service = service
        self._identities: Dict[str, Identity] = {}
        self._lock = threading.Lock()

    def identity_for(self, sid: str) -> Optional[Identity]:
        with self._lock:
            return self._identities.get(sid)

    def on_connect(self, sid, environ, auth=None):
        token = _token_from_auth(auth)
        if token:
            try:
                identity = decode_token(token)
            except AuthenticationError as exc:
                logger.info(f"Refused socket {sid}: {exc}")
                raise ConnectionRefusedError(exc.message)
            with self._lock:
                self._identities[sid] = identity
        self.service.presence.on_connect(sid)
        logger.debug(f"Socket {sid} connected")

    def on_authenticate(self, sid, data=None):
        username = _username_from(data)
        if username is None:
            return {"error": "Username required"}

        identity = self.identity_for(sid)
        if identity is not None and identity.username != username:
            logger.warning(f"Socket {sid} tried to bind {username} with a token for {identity.username}")
            return {"error": "Username does not match token"}

        presence = self.service.presence
        broadcaster = self.service.broadcaster
        if presence.authenticate(sid, username):
            logger.info(f"{username} is online")
            broadcaster.emit(ChatEvent.USER_ONLINE, username)
        broadcaster.emit(ChatEvent.ONLINE_USERS, presence.list_online(), to=sid)
        return {"success": True}

    def on_requestOnlineUsers(self, sid, data=None):
        self.service.broadcaster.emit(ChatEvent.ONLINE_USERS, self.service.presence.list_online(), to=sid)

    def on_messageDeleted(self, sid, message_id=None):
        if isinstance(message_id, dict):
            message_id = message_id.get("id")
        if message_id is None:
            return
        try:
            self.service.relay_deletion(str(message_id), sender=sid)
        except ChatError as exc:
            logger.warning(f"Could not relay deletion of {message_id}: {exc}")

    def on_sendMessage(self, sid, data=None):
        identity = self.identity_for(sid)
        if identity is None:
            return {"error": "Authentication required"}
        if not isinstance(data, dict):
            data = {"message": data}
        try:
            message = self.service.send_message(identity, data.get("message"), reply_to=data.get("replyTo"))
        except ChatError as exc:
            return {"error": exc.message}
        return {"success": True, "message": message.to_dict()}

    def on_disconnect(self, sid, reason=None):
        with self._lock:
            self._identities.pop(sid, None)
        username = self.service.presence.on_disconnect(sid)
        if username is not None:
            logger.info(f"{username} is offline")
            self.service.broadcaster.emit(ChatEvent.USER_OFFLINE, username)
