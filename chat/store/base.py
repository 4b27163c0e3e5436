"""
Message store contract shared by the JSON-file and database backends.

A store keeps the chat's messages ordered by ``created_at`` (insertion order
on ties), owns their reactions, and enforces the delete/clear permission
rules. Messages older than the retention window are purged lazily whenever
the list is read, and periodically by the retention sweeper.
"""

import abc
import re
from collections import namedtuple
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

import pytz
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from ..errors import AuthorizationError, ValidationError
from ..models import can_clear, can_moderate

EPOCH = datetime(1970, 1, 1, tzinfo=pytz.UTC)
DEFAULT_RETENTION = timedelta(days=7)

ReactionToggle = namedtuple("ReactionToggle", ["reactions", "added"])

_EPOCH_MS_RE = re.compile(r"^-?[0-9]+$", re.ASCII)


# ============================================================================
# TIMESTAMPS
# ============================================================================

def truncate_to_ms(value: datetime) -> datetime:
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as ``2026-01-31T09:15:02.123Z``."""
    value = value.astimezone(pytz.UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(raw) -> datetime:
    """
    Parse a polling cursor.

    Accepts an ISO-8601 string (``Z`` or an offset; naive values are UTC) or
    a bare integer of epoch milliseconds, so ``"0"`` means the epoch start.
    """
    if isinstance(raw, datetime):
        parsed = raw
    else:
        text = str(raw).strip()
        if _EPOCH_MS_RE.match(text):
            try:
                return EPOCH + timedelta(milliseconds=int(text))
            except (OverflowError, ValueError):
                raise ValidationError(f"Timestamp out of range: {text!r}")
        try:
            parsed = parse_datetime(text)
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValidationError(f"Invalid timestamp: {text!r}")
    if timezone.is_naive(parsed):
        parsed = pytz.UTC.localize(parsed)
    return parsed


# ============================================================================
# MESSAGE
# ============================================================================

@dataclass
class Message:
    id: str
    username: str
    role: str
    body: str
    created_at: datetime
    reply_to: Optional[str] = None
    reply_to_username: Optional[str] = None
    reply_to_content: Optional[str] = None
    reactions: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "message": self.body,
            "createdAt": format_timestamp(self.created_at),
            "reactions": {emoji: list(users) for emoji, users in self.reactions.items()},
        }
        if self.reply_to:
            data["replyTo"] = self.reply_to
            data["replyToUsername"] = self.reply_to_username
            data["replyToContent"] = self.reply_to_content
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        return cls(
            id=str(data["id"]),
            username=data["username"],
            role=data.get("role") or "general",
            body=data["message"],
            created_at=parse_timestamp(data["createdAt"]),
            reply_to=data.get("replyTo"),
            reply_to_username=data.get("replyToUsername"),
            reply_to_content=data.get("replyToContent"),
            reactions={emoji: list(users) for emoji, users in (data.get("reactions") or {}).items()},
        )


def toggle_in(reactions: Dict[str, List[str]], emoji: str, username: str) -> bool:
    """Toggle ``username`` under ``emoji`` in place; return True if added."""
    users = reactions.setdefault(emoji, [])
    if username in users:
        users.remove(username)
        if not users:
            del reactions[emoji]
        return False
    users.append(username)
    return True


# ============================================================================
# STORE CONTRACT
# ============================================================================

class MessageStore(abc.ABC):
    """Durable, ordered storage of chat messages and their reactions."""

    def __init__(self, retention: timedelta = DEFAULT_RETENTION, clock: Optional[Callable[[], datetime]] = None):
        self.retention = retention
        self.clock = clock or timezone.now

    def now(self) -> datetime:
        return truncate_to_ms(self.clock())

    def cutoff(self, now: Optional[datetime] = None) -> datetime:
        """Messages created at or before this instant have expired."""
        return (now or self.clock()) - self.retention

    # --- validation & permission rules ---

    @staticmethod
    def clean_body(body) -> str:
        if not isinstance(body, str) or not body.strip():
            raise ValidationError("Message cannot be empty")
        return body.strip()

    @staticmethod
    def clean_emoji(emoji) -> str:
        if not isinstance(emoji, str) or not emoji:
            raise ValidationError("Emoji required")
        return emoji

    @staticmethod
    def check_delete(message: Message, requesting_user: str, requesting_role: str) -> None:
        if message.username != requesting_user and not can_moderate(requesting_role):
            raise AuthorizationError("Not authorized to delete this message")

    @staticmethod
    def check_clear(requesting_role: str) -> None:
        if not can_clear(requesting_role):
            raise AuthorizationError("Not authorized to clear messages")

    # --- operations ---

    @abc.abstractmethod
    def append(self, author_username: str, author_role: str, body: str, reply_to: Optional[str] = None) -> Message:
        ...

    @abc.abstractmethod
    def get(self, message_id: str) -> Optional[Message]:
        ...

    @abc.abstractmethod
    def list_all(self) -> List[Message]:
        ...

    @abc.abstractmethod
    def list_since(self, timestamp) -> List[Message]:
        ...

    def list_recent(self, limit: int) -> List[Message]:
        return self.list_all()[:limit]

    @abc.abstractmethod
    def delete_by_id(self, message_id: str, requesting_user: str, requesting_role: str) -> Message:
        ...

    @abc.abstractmethod
    def clear_all(self, requesting_role: str) -> int:
        ...

    @abc.abstractmethod
    def toggle_reaction(self, message_id: str, username: str, emoji: str) -> ReactionToggle:
        ...

    @abc.abstractmethod
    def purge_expired(self, now: Optional[datetime] = None) -> int:
        ...
