import json

import pytest

from creatorkit.storage.local_store import (
    FileStorageEngine,
    InMemoryStorageEngine,
    LocalStore,
    StorageKeys,
    select_storage_engine,
)
from creatorkit.utils.schemas import OnboardingData, SavedItem, QuotaUsageRecord, ChatEntry
from fakes import FailingStorageEngine


def make_profile():
    return OnboardingData(platforms=["tiktok", "instagram"], niche="fitness", followers=12500, goal="50K")


@pytest.mark.asyncio
async def test_file_engine_survives_restart(tmp_path):
    path = str(tmp_path / "store" / "local.json")
    store = LocalStore(FileStorageEngine(path))
    await store.set_onboarding_data(make_profile())
    await store.add_saved_item(SavedItem(type="hook", title="Hook 1", payload={"content": "x"}))

    reopened = LocalStore(FileStorageEngine(path))

    assert await reopened.get_onboarding_data() == make_profile()
    assert [item.title for item in await reopened.get_saved_items()] == ["Hook 1"]


@pytest.mark.asyncio
async def test_corrupt_value_reads_as_absent():
    engine = InMemoryStorageEngine()
    await engine.set(StorageKeys.ONBOARDING_DATA, "{not json")
    store = LocalStore(engine)

    assert await store.get_onboarding_data() is None
    assert await store.load_json(StorageKeys.ONBOARDING_DATA, "fallback") == "fallback"


@pytest.mark.asyncio
async def test_malformed_saved_item_dropped_others_kept():
    engine = InMemoryStorageEngine()
    good = SavedItem(type="script", title="Good", payload={})
    await engine.set(StorageKeys.SAVED_ITEMS, json.dumps([
        good.model_dump(),
        {"type": "not-a-type", "title": "Bad"},
        "garbage",
    ]))

    items = await LocalStore(engine).get_saved_items()

    assert items == [good]


@pytest.mark.asyncio
async def test_saved_items_newest_first_and_removal(local_store):
    first = SavedItem(type="hook", title="First")
    second = SavedItem(type="caption", title="Second")
    await local_store.add_saved_item(first)
    await local_store.add_saved_item(second)

    assert [i.id for i in await local_store.get_saved_items()] == [second.id, first.id]

    await local_store.remove_saved_item(first.id)
    assert [i.id for i in await local_store.get_saved_items()] == [second.id]


@pytest.mark.asyncio
async def test_failing_engine_never_raises():
    store = LocalStore(FailingStorageEngine(fail_reads=True))

    assert await store.set_onboarding_data(make_profile()) is False
    assert await store.get_onboarding_data() is None
    assert await store.get_saved_items() == []
    await store.remove(StorageKeys.QUOTA_USAGE)
    await store.clear_all()


@pytest.mark.asyncio
async def test_clear_all_removes_every_key(local_store):
    await local_store.set_onboarding_data(make_profile())
    await local_store.add_saved_item(SavedItem(type="hook", title="H"))
    await local_store.set_quota_usage(QuotaUsageRecord(day="2026-10-19", text=3))
    await local_store.set_chat_history([ChatEntry(type="user", content="hi")])
    await local_store.set_preferences({"haptics": False})

    await local_store.clear_all()

    for key in StorageKeys.ALL:
        assert await local_store.engine.get(key) is None


@pytest.mark.asyncio
async def test_export_and_availability(local_store):
    await local_store.set_preferences({"theme": "dark"})

    exported = await local_store.export_all()
    status = await local_store.check_availability()

    assert exported["user_preferences"] == {"theme": "dark"}
    assert exported["onboarding_data"] is None
    assert status == {"available": True, "engine": "memory"}


def test_select_engine(tmp_path):
    assert isinstance(select_storage_engine(""), InMemoryStorageEngine)
    assert isinstance(select_storage_engine(str(tmp_path / "a" / "b.json")), FileStorageEngine)


def test_onboarding_platforms_behave_as_set():
    profile = OnboardingData(platforms=["tiktok", " tiktok ", "youtube", ""])

    assert profile.platforms == ["tiktok", "youtube"]


@pytest.mark.asyncio
async def test_file_that_is_not_utf8_is_replaced(tmp_path):
    path = tmp_path / "local.json"
    path.write_bytes(b'\xff\xfe{"onboarding_data": "x"}')
    store = LocalStore(FileStorageEngine(str(path)))

    assert await store.get_onboarding_data() is None
    assert await store.save_json(StorageKeys.USER_PREFERENCES, {"theme": "dark"}) is True
    assert await store.get_preferences() == {"theme": "dark"}

    await store.clear_all()
    assert json.loads(path.read_text(encoding="utf-8")) == {}
