from datetime import date, datetime, timedelta, timezone

import pytest

from creatorkit.config import Config
from creatorkit.database.connection import Database
from creatorkit.storage.local_store import LocalStore, InMemoryStorageEngine
from creatorkit.clients.supabase_auth import SupabaseIdentity
from creatorkit.core.session import SessionManager
from creatorkit.services.sync_service import SyncService
from creatorkit.database.repositories.profile_repository import ProfileRepository
from creatorkit.database.repositories.saved_item_repository import SavedItemRepository
from fakes import FakeSupabase

USER_EMAIL = "creator@example.com"
USER_PASSWORD = "hunter22"
USER_ID = "user-a"


class Clock:
    """Strictly increasing UTC timestamps, one second apart"""

    def __init__(self):
        self.now = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


class Today:
    """Settable local date"""

    def __init__(self, day=date(2026, 10, 19)):
        self.day = day

    def __call__(self):
        return self.day

    def advance(self, days=1):
        self.day += timedelta(days=days)


@pytest.fixture
def clock(monkeypatch):
    fake = Clock()
    monkeypatch.setattr("creatorkit.database.repositories.conversation_repository.utc_now", fake)
    monkeypatch.setattr("creatorkit.database.repositories.message_repository.utc_now", fake)
    return fake


@pytest.fixture
def today():
    return Today()


@pytest.fixture
def remote():
    fake = FakeSupabase()
    fake.auth.add_user(USER_EMAIL, USER_PASSWORD, USER_ID)
    return fake


@pytest.fixture
def database(remote):
    return Database(client=remote)


@pytest.fixture
def local_store():
    return LocalStore(InMemoryStorageEngine())


@pytest.fixture
def sync_service(local_store, database):
    return SyncService(local_store, ProfileRepository(database), SavedItemRepository(database))


@pytest.fixture
def session_manager(database, local_store, sync_service):
    return SessionManager(SupabaseIdentity(database), local_store, sync_service)


@pytest.fixture
def config():
    return Config(local_store_path="", openai_api_key="test-key")
