"""Tests for the chat REST endpoints."""

import json
from urllib.parse import quote

import pytest


@pytest.fixture
def chat(installed_service, api_client, auth_header):
    """Small helper around the test client speaking JSON with a bearer token."""

    class Chat:
        service = installed_service

        def get(self, path, username="alice", role="general"):
            return api_client.get(path, **auth_header(username, role))

        def post(self, path, payload, username="alice", role="general"):
            return api_client.post(
                path, data=json.dumps(payload), content_type="application/json", **auth_header(username, role)
            )

        def delete(self, path, username="alice", role="general"):
            return api_client.delete(path, **auth_header(username, role))

    return Chat()


def test_token_is_required(installed_service, api_client):
    response = api_client.get("/api/chat")
    assert response.status_code == 401
    assert response.json() == {"error": "No token provided"}

    response = api_client.get("/api/chat", HTTP_AUTHORIZATION="Bearer nonsense")
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}


def test_send_and_list(chat):
    response = chat.post("/api/chat", {"message": "hello"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"]["username"] == "alice"
    assert body["message"]["message"] == "hello"

    response = chat.get("/api/chat", username="bob")
    assert response.status_code == 200
    assert response.json() == {"messages": [body["message"]]}
    assert chat.service.broadcaster.names() == ["newMessage"]


def test_send_reply(chat):
    original = chat.post("/api/chat", {"message": "question?"}).json()["message"]

    reply = chat.post("/api/chat", {"message": "answer", "replyTo": original["id"]}, username="bob").json()["message"]

    assert reply["replyTo"] == original["id"]
    assert reply["replyToUsername"] == "alice"
    assert reply["replyToContent"] == "question?"


def test_send_empty_message(chat):
    response = chat.post("/api/chat", {"message": "   "})
    assert response.status_code == 400
    assert response.json() == {"error": "Message cannot be empty"}
    assert chat.service.broadcaster.events == []


def test_malformed_json(installed_service, api_client, auth_header):
    response = api_client.post("/api/chat", data="{not json", content_type="application/json", **auth_header())
    assert response.status_code == 400
    assert "error" in response.json()


def test_method_not_allowed(chat):
    assert chat.delete("/api/chat").status_code == 405


def test_messages_since(chat, clock):
    first = chat.post("/api/chat", {"message": "one"}).json()["message"]
    clock.advance(seconds=2)
    second = chat.post("/api/chat", {"message": "two"}).json()["message"]

    response = chat.get(f"/api/chat/since/{quote(first['createdAt'], safe='')}")
    assert response.status_code == 200
    assert [m["id"] for m in response.json()["messages"]] == [second["id"]]

    response = chat.get("/api/chat/since/0")
    assert [m["id"] for m in response.json()["messages"]] == [first["id"], second["id"]]

    response = chat.get(f"/api/chat/since/{quote(second['createdAt'], safe='')}")
    assert response.json() == {"messages": []}


def test_messages_since_bad_cursor(chat):
    response = chat.get("/api/chat/since/not-a-time")
    assert response.status_code == 400


def test_delete_message(chat):
    message = chat.post("/api/chat", {"message": "hello"}).json()["message"]

    response = chat.delete(f"/api/chat/{message['id']}", username="bob")
    assert response.status_code == 403

    response = chat.delete(f"/api/chat/{message['id']}")
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert chat.get("/api/chat").json() == {"messages": []}

    response = chat.delete(f"/api/chat/{message['id']}")
    assert response.status_code == 404
    assert response.json() == {"error": "Message not found"}


def test_moderator_deletes_any_message(chat):
    message = chat.post("/api/chat", {"message": "spam"}).json()["message"]

    response = chat.delete(f"/api/chat/{message['id']}", username="mod", role="moderator")

    assert response.status_code == 200
    assert chat.service.broadcaster.names() == ["newMessage", "messageDeleted"]


def test_clear_messages(chat):
    chat.post("/api/chat", {"message": "one"})
    chat.post("/api/chat", {"message": "two"})

    response = chat.delete("/api/chat/clear")
    assert response.status_code == 403
    assert len(chat.get("/api/chat").json()["messages"]) == 2

    response = chat.delete("/api/chat/clear", username="sam", role="secretary")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "All messages cleared"}
    assert chat.get("/api/chat").json() == {"messages": []}


def test_toggle_reaction(chat):
    message = chat.post("/api/chat", {"message": "hello"}).json()["message"]
    path = f"/api/chat/{message['id']}/reaction"

    response = chat.post(path, {"emoji": "👍"}, username="bob")
    assert response.status_code == 200
    assert response.json() == {"success": True, "reactions": {"👍": ["bob"]}}

    response = chat.post(path, {"emoji": "👍"}, username="bob")
    assert response.json() == {"success": True, "reactions": {}}

    assert chat.post(path, {}, username="bob").status_code == 400
    assert chat.post("/api/chat/987654/reaction", {"emoji": "👍"}).status_code == 404


def test_typing_roundtrip(chat):
    assert chat.post("/api/chat/typing", {"isTyping": True}).json() == {"success": True}

    assert chat.get("/api/chat/typing/users", username="bob").json() == {"typingUsers": {"alice": True}}
    assert chat.get("/api/chat/typing/users").json() == {"typingUsers": {}}

    chat.post("/api/chat/typing", {"isTyping": False})
    assert chat.get("/api/chat/typing/users", username="bob").json() == {"typingUsers": {}}


def test_online_users(chat):
    chat.service.presence.on_connect("sid-1")
    chat.service.presence.authenticate("sid-1", "carol")

    assert chat.get("/api/chat/online").json() == {"onlineUsers": ["carol"]}


def test_health_needs_no_token(api_client):
    response = api_client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_odd_message_ids_are_not_found(chat):
    """Test ids made of non-ASCII digits get 404s, and replies to them are plain messages."""
    response = chat.post("/api/chat", {"message": "hi", "replyTo": "²"})
    assert response.status_code == 200
    assert "replyTo" not in response.json()["message"]

    assert chat.delete(f"/api/chat/{quote('²')}").status_code == 404
    assert chat.post(f"/api/chat/{quote('²')}/reaction", {"emoji": "👍"}).status_code == 404


def test_messages_since_out_of_range_cursor(chat):
    response = chat.get("/api/chat/since/99999999999999999999")
    assert response.status_code == 400
    assert "error" in response.json()
