"""
Relational message store on top of the Django ORM.

Messages live in ``chat_chatmessage``; reactions in the ``chat_chatreaction``
side table keyed by message id. Every operation that touches more than one
row runs inside a transaction, so no extra locking is needed.
"""

import logging
from collections import OrderedDict
from typing import Iterable, List, Optional

from django.db import DatabaseError, transaction

from ..errors import NotFoundError, PersistenceError
from ..models import ChatMessage, ChatReaction
from .base import Message, MessageStore, ReactionToggle, parse_timestamp

logger = logging.getLogger(__name__)

_MAX_PK = 2 ** 63 - 1


def _as_pk(message_id) -> Optional[int]:
    text = str(message_id).strip()
    if not (text.isascii() and text.isdecimal()):
        return None
    pk = int(text)
    # BigAutoField range
    return pk if pk <= _MAX_PK else None


def _reaction_map(reactions: Iterable[ChatReaction]) -> dict:
    grouped = OrderedDict()
    for reaction in reactions:
        grouped.setdefault(reaction.emoji, []).append(reaction.username)
    return dict(grouped)


def _to_message(row: ChatMessage, reactions: Optional[Iterable[ChatReaction]] = None) -> Message:
    if reactions is None:
        reactions = row.reactions.all()
    return Message(
        id=str(row.pk),
        username=row.author_username,
        role=row.author_role,
        body=row.body,
        created_at=row.created_at,
        reply_to=row.reply_to,
        reply_to_username=row.reply_to_username,
        reply_to_content=row.reply_to_content,
        reactions=_reaction_map(reactions),
    )


class DatabaseMessageStore(MessageStore):

    def _retained_rows(self):
        self.purge_expired()
        return ChatMessage.objects.prefetch_related("reactions").order_by("created_at", "id")

    def _live(self, pk: Optional[int]) -> Optional[ChatMessage]:
        if pk is None:
            return None
        return ChatMessage.objects.filter(pk=pk, created_at__gt=self.cutoff()).first()

    def _fetch(self, rows) -> List[Message]:
        try:
            return [_to_message(row) for row in rows]
        except DatabaseError as exc:
            logger.exception("Failed to read chat messages")
            raise PersistenceError("Failed to load chat messages") from exc

    def append(self, author_username, author_role, body, reply_to=None) -> Message:
        body = self.clean_body(body)
        try:
            with transaction.atomic():
                original = self._live(_as_pk(reply_to)) if reply_to else None
                row = ChatMessage.objects.create(
                    author_username=author_username,
                    author_role=author_role,
                    body=body,
                    created_at=self.now(),
                    reply_to=str(original.pk) if original else None,
                    reply_to_username=original.author_username if original else None,
                    reply_to_content=original.body if original else None,
                )
        except DatabaseError as exc:
            logger.exception(f"Failed to store chat message from {author_username}")
            raise PersistenceError("Failed to send message") from exc
        return _to_message(row, reactions=[])

    def get(self, message_id) -> Optional[Message]:
        try:
            row = self._live(_as_pk(message_id))
            return _to_message(row) if row else None
        except DatabaseError as exc:
            logger.exception(f"Failed to read chat message {message_id}")
            raise PersistenceError("Failed to load chat messages") from exc

    def list_all(self) -> List[Message]:
        return self._fetch(self._retained_rows())

    def list_recent(self, limit: int) -> List[Message]:
        return self._fetch(self._retained_rows()[:limit])

    def list_since(self, timestamp) -> List[Message]:
        since = parse_timestamp(timestamp)
        return self._fetch(self._retained_rows().filter(created_at__gt=since))

    def delete_by_id(self, message_id, requesting_user, requesting_role) -> Message:
        pk = _as_pk(message_id)
        try:
            with transaction.atomic():
                row = self._live(pk)
                if row is None:
                    raise NotFoundError("Message not found")
                message = _to_message(row)
                self.check_delete(message, requesting_user, requesting_role)
                row.delete()
        except DatabaseError as exc:
            logger.exception(f"Failed to delete chat message {message_id}")
            raise PersistenceError("Failed to delete message") from exc
        return message

    def clear_all(self, requesting_role) -> int:
        self.check_clear(requesting_role)
        try:
            _, per_model = ChatMessage.objects.all().delete()
        except DatabaseError as exc:
            logger.exception("Failed to clear chat messages")
            raise PersistenceError("Failed to clear messages") from exc
        return per_model.get(ChatMessage._meta.label, 0)

    def toggle_reaction(self, message_id, username, emoji) -> ReactionToggle:
        emoji = self.clean_emoji(emoji)
        pk = _as_pk(message_id)
        try:
            with transaction.atomic():
                if self._live(pk) is None:
                    raise NotFoundError("Message not found")
                existing = ChatReaction.objects.filter(message_id=pk, emoji=emoji, username=username)
                if existing.exists():
                    existing.delete()
                    added = False
                else:
                    ChatReaction.objects.create(message_id=pk, emoji=emoji, username=username)
                    added = True
                reactions = _reaction_map(ChatReaction.objects.filter(message_id=pk).order_by("created_at", "id"))
        except DatabaseError as exc:
            logger.exception(f"Failed to toggle reaction on chat message {message_id}")
            raise PersistenceError("Failed to add reaction") from exc
        return ReactionToggle(reactions, added)

    def purge_expired(self, now=None) -> int:
        try:
            _, per_model = ChatMessage.objects.filter(created_at__lte=self.cutoff(now)).delete()
        except DatabaseError as exc:
            logger.exception("Failed to purge expired chat messages")
            raise PersistenceError("Failed to purge expired messages") from exc
        removed = per_model.get(ChatMessage._meta.label, 0)
        if removed:
            logger.info(f"Purged {removed} expired chat message(s)")
        return removed
