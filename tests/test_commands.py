"""Tests for the chat management commands."""

from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from chat.auth import Identity, decode_token
from chat.models import ChatMessage, User
from chat.store import JsonFileMessageStore


@pytest.mark.django_db
def test_issue_chat_token_uses_stored_role():
    User.objects.create_user("alice", password="s3cret-pass", role="moderator")
    out = StringIO()

    call_command("issue_chat_token", "alice", stdout=out)

    assert decode_token(out.getvalue().strip()) == Identity("alice", "moderator")


@pytest.mark.django_db
def test_issue_chat_token_unknown_user():
    with pytest.raises(CommandError):
        call_command("issue_chat_token", "nobody")


@pytest.mark.django_db
def test_purge_chat_removes_expired_rows(clock, db_store):
    clock.advance(days=-3650)
    db_store.append("alice", "general", "ten years old")
    out = StringIO()

    call_command("purge_chat", "--backend", "database", stdout=out)

    assert ChatMessage.objects.count() == 0
    assert "Removed 1 expired message(s)" in out.getvalue()


def test_purge_chat_json_backend(settings, json_path):
    JsonFileMessageStore(json_path).append("alice", "general", "fresh")
    settings.CHAT_JSON_PATH = json_path
    out = StringIO()

    call_command("purge_chat", "--backend", "json", stdout=out)

    assert "Removed 0 expired message(s)" in out.getvalue()
    assert json_path.exists()
