"""
File-backed message store.

The whole chat lives in one JSON array which is rewritten in full on every
mutation. A re-entrant lock serializes each read-modify-write cycle and the
file is replaced atomically, so readers never see a half-written array.
"""

import json
import logging
import os
import secrets
import string
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..errors import NotFoundError, PersistenceError
from .base import Message, MessageStore, ReactionToggle, parse_timestamp, toggle_in

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class JsonFileMessageStore(MessageStore):

    def __init__(self, path, **kwargs):
        super().__init__(**kwargs)
        self.path = Path(path)
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def _load(self) -> List[Message]:
        if not self.path.exists():
            return []
        try:
            records = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(records, list):
                raise ValueError(f"expected a JSON array, got {type(records).__name__}")
            return [Message.from_dict(record) for record in records]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.exception(f"Failed to load chat messages from {self.path}")
            raise PersistenceError("Failed to load chat messages") from exc

    def _save(self, messages: List[Message]) -> None:
        serialized = json.dumps([m.to_dict() for m in messages], indent=2, ensure_ascii=False)
        temp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=self.path.parent, delete=False, encoding="utf-8", suffix=".tmp"
            ) as tmp:
                temp_path = Path(tmp.name)
                tmp.write(serialized)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(temp_path, self.path)
        except OSError as exc:
            logger.exception(f"Failed to save chat messages to {self.path}")
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()
            raise PersistenceError("Failed to save chat messages") from exc

    def _load_retained(self) -> List[Message]:
        """Load, dropping (and persisting the removal of) expired messages."""
        messages = self._load()
        cutoff = self.cutoff()
        retained = [m for m in messages if m.created_at > cutoff]
        if len(retained) != len(messages):
            logger.info(f"Purged {len(messages) - len(retained)} expired chat message(s)")
            self._save(retained)
        return retained

    @staticmethod
    def _ordered(messages: List[Message]) -> List[Message]:
        # sorted() is stable: equal timestamps keep file (insertion) order
        return sorted(messages, key=lambda m: m.created_at)

    @staticmethod
    def _find(messages: List[Message], message_id) -> Optional[int]:
        for index, message in enumerate(messages):
            if message.id == str(message_id):
                return index
        return None

    @staticmethod
    def _new_id(created_at: datetime, taken) -> str:
        while True:
            suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
            candidate = f"{int(created_at.timestamp() * 1000)}{suffix}"
            if candidate not in taken:
                return candidate

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def append(self, author_username, author_role, body, reply_to=None) -> Message:
        body = self.clean_body(body)
        with self._lock:
            messages = self._load_retained()
            created_at = self.now()
            message = Message(
                id=self._new_id(created_at, {m.id for m in messages}),
                username=author_username,
                role=author_role,
                body=body,
                created_at=created_at,
            )
            if reply_to:
                index = self._find(messages, reply_to)
                if index is not None:
                    original = messages[index]
                    message.reply_to = original.id
                    message.reply_to_username = original.username
                    message.reply_to_content = original.body
            messages.append(message)
            self._save(messages)
        return message

    def get(self, message_id) -> Optional[Message]:
        with self._lock:
            messages = self._load_retained()
        index = self._find(messages, message_id)
        return messages[index] if index is not None else None

    def list_all(self) -> List[Message]:
        with self._lock:
            return self._ordered(self._load_retained())

    def list_since(self, timestamp) -> List[Message]:
        since = parse_timestamp(timestamp)
        with self._lock:
            messages = self._load_retained()
        return self._ordered([m for m in messages if m.created_at > since])

    def delete_by_id(self, message_id, requesting_user, requesting_role) -> Message:
        with self._lock:
            messages = self._load_retained()
            index = self._find(messages, message_id)
            if index is None:
                raise NotFoundError("Message not found")
            self.check_delete(messages[index], requesting_user, requesting_role)
            removed = messages.pop(index)
            self._save(messages)
        return removed

    def clear_all(self, requesting_role) -> int:
        self.check_clear(requesting_role)
        with self._lock:
            count = len(self._load())
            self._save([])
        return count

    def toggle_reaction(self, message_id, username, emoji) -> ReactionToggle:
        emoji = self.clean_emoji(emoji)
        with self._lock:
            messages = self._load_retained()
            index = self._find(messages, message_id)
            if index is None:
                raise NotFoundError("Message not found")
            message = messages[index]
            added = toggle_in(message.reactions, emoji, username)
            self._save(messages)
            reactions = {e: list(users) for e, users in message.reactions.items()}
        return ReactionToggle(reactions, added)

    def purge_expired(self, now=None) -> int:
        cutoff = self.cutoff(now)
        with self._lock:
            messages = self._load()
            retained = [m for m in messages if m.created_at > cutoff]
            removed = len(messages) - len(retained)
            if removed:
                self._save(retained)
        return removed
