"""Tests for the typing indicator tracker."""

from chat.typing_indicators import DEFAULT_TYPING_TIMEOUT, TypingTracker


def test_typing_expires_after_timeout(monotonic):
    """Test a typer without a refresh drops out after 3.5 seconds."""
    typing = TypingTracker(clock=monotonic)
    typing.set_typing("alice")

    monotonic.advance(seconds=3.4)
    assert typing.list_active_typers() == ["alice"]

    monotonic.advance(seconds=0.2)
    assert typing.list_active_typers() == []


def test_refresh_keeps_typer_active(monotonic):
    typing = TypingTracker(clock=monotonic)
    typing.set_typing("alice")
    monotonic.advance(seconds=3)
    typing.set_typing("alice")
    monotonic.advance(seconds=3)

    assert typing.list_active_typers() == ["alice"]


def test_requester_is_excluded(monotonic):
    typing = TypingTracker(clock=monotonic)
    typing.set_typing("alice")
    typing.set_typing("bob")

    assert typing.list_active_typers(excluding="alice") == ["bob"]
    assert typing.list_active_typers(excluding="carol") == ["alice", "bob"]


def test_clear_typing(monotonic):
    typing = TypingTracker(clock=monotonic)
    typing.set_typing("alice")
    typing.clear_typing("alice")
    typing.clear_typing("nobody")

    assert typing.list_active_typers() == []


def test_default_timeout():
    assert TypingTracker().timeout == DEFAULT_TYPING_TIMEOUT == 3.5


def test_typer_expires_exactly_at_timeout(monotonic):
    typing = TypingTracker(clock=monotonic)
    typing.set_typing("alice")

    monotonic.advance(seconds=DEFAULT_TYPING_TIMEOUT)

    assert typing.list_active_typers() == []
