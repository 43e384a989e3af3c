import pytest

from creatorkit.database.repositories.profile_repository import ProfileRepository
from creatorkit.database.repositories.usage_repository import UsageRepository
from creatorkit.services.quota_service import QuotaService
from creatorkit.storage.local_store import LocalStore
from creatorkit.utils.schemas import QuotaUsageRecord
from fakes import FailingStorageEngine
from conftest import USER_EMAIL, USER_PASSWORD, USER_ID


@pytest.fixture
def quota(session_manager, local_store, database, today):
    return QuotaService(
        session_manager, local_store, UsageRepository(database), ProfileRepository(database),
        max_text=3, max_image=1, today=today
    )


@pytest.mark.asyncio
async def test_guest_increments_count_up(quota, local_store):
    for _ in range(2):
        await quota.increment("text")

    usage = await quota.get_usage("text")

    assert usage.count == 2
    assert usage.remaining == 1
    assert (await local_store.get_quota_usage()).text == 2


@pytest.mark.asyncio
async def test_can_use_false_at_max(quota):
    for _ in range(3):
        assert await quota.can_use("text")
        await quota.increment("text")

    assert not await quota.can_use("text")
    assert await quota.remaining("text") == 0
    assert await quota.can_use("image")


@pytest.mark.asyncio
async def test_guest_counter_resets_on_new_day(quota, local_store, today):
    await quota.increment("image")
    assert not await quota.can_use("image")

    today.advance()
    usage = await quota.get_usage("image")

    assert usage.count == 0
    assert usage.day == "2026-10-20"
    assert (await local_store.get_quota_usage()) == QuotaUsageRecord(day="2026-10-20")


@pytest.mark.asyncio
async def test_stale_stored_record_reads_as_zero(session_manager, local_store, database, today):
    await local_store.set_quota_usage(QuotaUsageRecord(day="2026-10-01", text=9, image=1))
    quota = QuotaService(session_manager, local_store, UsageRepository(database), today=today)

    assert (await quota.get_usage("text")).count == 0
    assert (await local_store.get_quota_usage()).day == "2026-10-19"


@pytest.mark.asyncio
async def test_signed_in_usage_goes_to_remote(quota, session_manager, remote):
    await session_manager.sign_in(USER_EMAIL, USER_PASSWORD)

    await quota.increment("text")
    await quota.increment("text")

    rows = remote.rows("usage_log")
    assert rows == [{"user_id": USER_ID, "kind": "text", "day": "2026-10-19", "count": 2}]


@pytest.mark.asyncio
async def test_signed_in_counter_resets_on_new_day(quota, session_manager, today):
    await session_manager.sign_in(USER_EMAIL, USER_PASSWORD)
    await quota.increment("image")

    today.advance()

    assert (await quota.get_usage("image")).count == 0
    assert await quota.can_use("image")


@pytest.mark.asyncio
async def test_failed_remote_write_keeps_memory_count(quota, session_manager, remote):
    await session_manager.sign_in(USER_EMAIL, USER_PASSWORD)
    remote.fail("usage_log", "upsert")

    await quota.increment("text")
    usage = await quota.increment("text")

    assert usage.count == 2
    assert remote.rows("usage_log") == []

    remote.recover()
    usage = await quota.increment("text")

    assert usage.count == 3
    assert remote.rows("usage_log")[0]["count"] == 3


@pytest.mark.asyncio
async def test_failed_remote_read_uses_memory(quota, session_manager, remote):
    await session_manager.sign_in(USER_EMAIL, USER_PASSWORD)
    await quota.increment("text")
    remote.fail("usage_log", "select")

    assert (await quota.get_usage("text")).count == 1


@pytest.mark.asyncio
async def test_failed_local_write_never_grants_extra_allowance(session_manager, database, today):
    store = LocalStore(FailingStorageEngine())
    quota = QuotaService(session_manager, store, UsageRepository(database), max_text=2, today=today)

    await quota.increment("text")
    await quota.increment("text")

    assert not await quota.can_use("text")


@pytest.mark.asyncio
async def test_pro_user_is_never_blocked(quota, session_manager, remote):
    remote.tables["profiles"] = [{"id": USER_ID, "is_pro": True}]
    await session_manager.sign_in(USER_EMAIL, USER_PASSWORD)

    for _ in range(5):
        await quota.increment("image")
    usage = await quota.get_usage("image")

    assert usage.is_pro
    assert usage.max == 999999
    assert await quota.can_use("image")


@pytest.mark.asyncio
async def test_session_change_drops_memory_counters(quota, session_manager, remote):
    session_manager.subscribe(quota.on_session_change)
    await quota.increment("text")
    await quota.increment("text")

    await session_manager.sign_in(USER_EMAIL, USER_PASSWORD)

    assert (await quota.get_usage("text")).count == 0


@pytest.mark.asyncio
async def test_unknown_kind_rejected(quota):
    with pytest.raises(ValueError):
        await quota.increment("video")
