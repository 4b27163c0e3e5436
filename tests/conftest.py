"""Common test fixtures for the community chat tests."""

from datetime import datetime, timedelta
from pathlib import Path

import pytest
import pytz
from django.apps import apps
from django.test import Client

from chat.auth import create_access_token
from chat.broadcaster import RecordingBroadcaster
from chat.service import ChatService
from chat.store import DatabaseMessageStore, JsonFileMessageStore
from chat.typing_indicators import TypingTracker


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)


class MonotonicClock:
    """Seconds counter standing in for ``time.monotonic``."""

    def __init__(self, start=1000.0):
        self.current = float(start)

    def __call__(self):
        return self.current

    def advance(self, seconds):
        self.current += float(seconds)


@pytest.fixture
def clock() -> FakeClock:
    """A wall clock frozen at a fixed UTC instant."""
    return FakeClock(datetime(2026, 3, 1, 12, 0, 0, tzinfo=pytz.UTC))


@pytest.fixture
def monotonic() -> MonotonicClock:
    """A monotonic clock (plain seconds) for the typing tracker."""
    return MonotonicClock()


@pytest.fixture
def json_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "chat.json"


@pytest.fixture
def json_store(json_path: Path, clock: FakeClock) -> JsonFileMessageStore:
    return JsonFileMessageStore(json_path, clock=clock)


@pytest.fixture
def db_store(db, clock: FakeClock) -> DatabaseMessageStore:
    return DatabaseMessageStore(clock=clock)


@pytest.fixture(params=["json", "database"])
def store(request, clock: FakeClock):
    """Run a test once against each store backend."""
    if request.param == "database":
        return request.getfixturevalue("db_store")
    return request.getfixturevalue("json_store")


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def service(store, broadcaster, monotonic) -> ChatService:
    return ChatService(
        store=store,
        broadcaster=broadcaster,
        typing=TypingTracker(clock=monotonic),
    )


@pytest.fixture
def installed_service(service: ChatService, monkeypatch) -> ChatService:
    """Make the views and socket handlers use ``service``."""
    monkeypatch.setattr(apps.get_app_config("chat"), "service", service)
    return service


@pytest.fixture
def api_client() -> Client:
    return Client()


@pytest.fixture
def auth_header():
    """Build the Authorization header of a member with the given role."""

    def _make(username="alice", role="general"):
        return {"HTTP_AUTHORIZATION": f"Bearer {create_access_token(username, role)}"}

    return _make
