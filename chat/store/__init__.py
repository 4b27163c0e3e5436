from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .base import Message, MessageStore, ReactionToggle, format_timestamp, parse_timestamp
from .database import DatabaseMessageStore
from .json_file import JsonFileMessageStore


def build_message_store(backend=None, **kwargs) -> MessageStore:
    """Create the store selected by ``CHAT_STORE_BACKEND`` ('database' or 'json')."""
    backend = (backend or settings.CHAT_STORE_BACKEND).lower()
    kwargs.setdefault("retention", timedelta(days=settings.CHAT_RETENTION_DAYS))
    if backend == "database":
        return DatabaseMessageStore(**kwargs)
    if backend == "json":
        return JsonFileMessageStore(kwargs.pop("path", settings.CHAT_JSON_PATH), **kwargs)
    raise ImproperlyConfigured(f"Unsupported CHAT_STORE_BACKEND: {backend!r}")


__all__ = [
    "DatabaseMessageStore",
    "JsonFileMessageStore",
    "Message",
    "MessageStore",
    "ReactionToggle",
    "build_message_store",
    "format_timestamp",
    "parse_timestamp",
]
