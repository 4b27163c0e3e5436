"""Tests for the chat service: persistence first, then broadcast."""

import pytest

from chat.auth import Identity
from chat.broadcaster import ChatEvent
from chat.errors import AuthenticationError, AuthorizationError, PersistenceError, ValidationError
from chat.service import ChatService

ALICE = Identity("alice", "general")
BOB = Identity("bob", "general")
MOD = Identity("mod", "moderator")


def test_send_message_broadcasts_new_message(service, broadcaster):
    message = service.send_message(ALICE, "hello")

    assert broadcaster.events == [(ChatEvent.NEW_MESSAGE, message.to_dict(), None, None)]
    assert service.messages() == [message.to_dict()]


def test_rejected_message_is_not_broadcast(service, broadcaster):
    with pytest.raises(ValidationError):
        service.send_message(ALICE, "   ")
    assert broadcaster.events == []


def test_anonymous_mutations_are_refused(service, broadcaster):
    with pytest.raises(AuthenticationError):
        service.send_message(None, "hello")
    with pytest.raises(AuthenticationError):
        service.clear_messages(None)
    assert broadcaster.events == []


def test_persistence_failure_is_not_broadcast(service, broadcaster, mocker):
    mocker.patch.object(service.store, "append", side_effect=PersistenceError("disk full"))

    with pytest.raises(PersistenceError):
        service.send_message(ALICE, "hello")
    assert broadcaster.events == []


def test_delete_broadcasts_id(service, broadcaster):
    message = service.send_message(ALICE, "hello")
    broadcaster.clear()

    service.delete_message(MOD, message.id)

    assert broadcaster.events == [(ChatEvent.MESSAGE_DELETED, message.id, None, None)]
    assert service.messages() == []


def test_forbidden_delete_is_not_broadcast(service, broadcaster):
    message = service.send_message(ALICE, "hello")
    broadcaster.clear()

    with pytest.raises(AuthorizationError):
        service.delete_message(BOB, message.id)
    assert broadcaster.events == []


def test_clear_broadcasts_chat_cleared(service, broadcaster):
    service.send_message(ALICE, "hello")
    broadcaster.clear()

    assert service.clear_messages(MOD) == 1
    assert broadcaster.names() == ["chatCleared"]


def test_reaction_events(service, broadcaster):
    message = service.send_message(ALICE, "hello")
    broadcaster.clear()

    assert service.toggle_reaction(BOB, message.id, "🎉") == {"🎉": ["bob"]}
    assert service.toggle_reaction(BOB, message.id, "🎉") == {}

    payload = {"messageId": message.id, "emoji": "🎉", "username": "bob"}
    assert broadcaster.events == [
        (ChatEvent.REACTION_ADDED, payload, None, None),
        (ChatEvent.REACTION_REMOVED, payload, None, None),
    ]


def test_history_is_capped(store, broadcaster, clock):
    service = ChatService(store=store, broadcaster=broadcaster, history_limit=2)
    for body in ("one", "two", "three"):
        service.send_message(ALICE, body)
        clock.advance(seconds=1)

    assert [m["message"] for m in service.messages()] == ["one", "two"]


def test_messages_since(service, clock):
    first = service.send_message(ALICE, "one")
    clock.advance(seconds=1)
    second = service.send_message(BOB, "two")

    since = service.messages_since(first.to_dict()["createdAt"])
    assert [m["id"] for m in since] == [second.id]


def test_relay_deletion_only_for_deleted_messages(service, broadcaster):
    message = service.send_message(ALICE, "hello")
    broadcaster.clear()

    assert service.relay_deletion(message.id, sender="sid-1") is False

    service.store.delete_by_id(message.id, "alice", "general")
    assert service.relay_deletion(message.id, sender="sid-1") is True
    assert broadcaster.events == [(ChatEvent.MESSAGE_DELETED, message.id, None, "sid-1")]


def test_typing_users(service, monotonic):
    service.set_typing(ALICE, True)
    service.set_typing(BOB, True)

    assert service.typing_users(ALICE) == {"bob": True}

    service.set_typing(BOB, False)
    assert service.typing_users(ALICE) == {}

    service.set_typing(ALICE, True)
    monotonic.advance(seconds=4)
    assert service.typing_users(BOB) == {}


def test_start_and_stop_run_the_sweeper(service, mocker):
    purge = mocker.patch.object(service.store, "purge_expired", return_value=0)
    service.start()
    try:
        assert service.sweeper.running
    finally:
        service.stop()
    assert not service.sweeper.running
    purge.assert_called()
