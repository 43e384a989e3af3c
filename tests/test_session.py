import asyncio

import pytest

from creatorkit.core.errors import AuthError
from creatorkit.core.session import AuthState, SessionManager
from creatorkit.clients.supabase_auth import SupabaseIdentity
from creatorkit.storage.local_store import StorageKeys
from creatorkit.utils.schemas import OnboardingData, SavedItem, QuotaUsageRecord, ChatEntry
from conftest import USER_EMAIL, USER_PASSWORD, USER_ID


class CountingReconciler:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    async def reconcile(self, user_id):
        self.calls.append(user_id)
        if self.fail:
            raise RuntimeError("sync exploded")


async def drain():
    for _ in range(5):
        await asyncio.sleep(0)


async def fill_local_store(store):
    await store.set_onboarding_data(OnboardingData(niche="tech", followers=10))
    await store.add_saved_item(SavedItem(type="hook", title="H"))
    await store.set_quota_usage(QuotaUsageRecord(day="2026-10-19", text=4))
    await store.set_chat_history([ChatEntry(type="user", content="hello")])
    await store.set_preferences({"notifications": True})


@pytest.mark.asyncio
async def test_sign_in_reconciles_exactly_once(database, local_store):
    reconciler = CountingReconciler()
    manager = SessionManager(SupabaseIdentity(database), local_store, reconciler)
    manager.attach()
    seen = []

    async def listener(session):
        seen.append(session)

    manager.subscribe(listener)

    session = await manager.sign_in(USER_EMAIL, USER_PASSWORD)
    await drain()

    assert session.auth_state is AuthState.SIGNED_IN
    assert manager.user_id == USER_ID
    assert reconciler.calls == [USER_ID]
    assert [s.user_id for s in seen] == [USER_ID]


@pytest.mark.asyncio
async def test_failed_sign_in_keeps_guest_session(session_manager):
    with pytest.raises(AuthError):
        await session_manager.sign_in(USER_EMAIL, "wrong")

    assert session_manager.session.auth_state is AuthState.SIGNED_OUT
    assert session_manager.is_guest


@pytest.mark.asyncio
async def test_reconcile_failure_does_not_block_sign_in(database, local_store):
    manager = SessionManager(SupabaseIdentity(database), local_store, CountingReconciler(fail=True))

    session = await manager.sign_in(USER_EMAIL, USER_PASSWORD)

    assert session.is_signed_in


@pytest.mark.asyncio
async def test_sign_out_clears_every_local_key(session_manager, local_store):
    await session_manager.sign_in(USER_EMAIL, USER_PASSWORD)
    await fill_local_store(local_store)

    session = await session_manager.sign_out()

    assert session.auth_state is AuthState.SIGNED_OUT
    for key in StorageKeys.ALL:
        assert await local_store.engine.get(key) is None


@pytest.mark.asyncio
async def test_sign_out_as_guest_still_clears(session_manager, local_store):
    await fill_local_store(local_store)

    await session_manager.sign_out()

    for key in StorageKeys.ALL:
        assert await local_store.engine.get(key) is None


@pytest.mark.asyncio
async def test_remote_sign_out_failure_still_signs_out_locally(session_manager, local_store, remote):
    await session_manager.sign_in(USER_EMAIL, USER_PASSWORD)
    await fill_local_store(local_store)
    remote.auth.sign_out_error = ConnectionError("offline")
    notified = []

    async def listener(session):
        notified.append(session.auth_state)

    session_manager.subscribe(listener)

    await session_manager.sign_out()

    assert session_manager.is_guest
    assert notified == [AuthState.SIGNED_OUT]
    assert await local_store.get_onboarding_data() is None


@pytest.mark.asyncio
async def test_listener_failure_does_not_stop_others(session_manager):
    calls = []

    async def broken(session):
        raise RuntimeError("boom")

    async def healthy(session):
        calls.append(session.user_id)

    session_manager.subscribe(broken)
    session_manager.subscribe(healthy)

    await session_manager.sign_in(USER_EMAIL, USER_PASSWORD)

    assert calls == [USER_ID]


@pytest.mark.asyncio
async def test_unsubscribe(session_manager):
    calls = []

    async def listener(session):
        calls.append(session)

    unsubscribe = session_manager.subscribe(listener)
    unsubscribe()
    await session_manager.sign_in(USER_EMAIL, USER_PASSWORD)

    assert calls == []


@pytest.mark.asyncio
async def test_identity_events_drive_transitions(database, local_store):
    reconciler = CountingReconciler()
    manager = SessionManager(SupabaseIdentity(database), local_store, reconciler)
    await fill_local_store(local_store)

    await manager.handle_auth_event("SIGNED_IN", "user-b")
    await manager.handle_auth_event("SIGNED_IN", "user-b")
    assert reconciler.calls == ["user-b"]

    await manager.handle_auth_event("SIGNED_OUT", None)
    assert manager.is_guest
    assert await local_store.get_saved_items() == []


@pytest.mark.asyncio
async def test_restore_adopts_existing_session_without_sync(database, local_store, remote):
    await remote.auth.sign_in_with_password({"email": USER_EMAIL, "password": USER_PASSWORD})
    reconciler = CountingReconciler()
    manager = SessionManager(SupabaseIdentity(database), local_store, reconciler)

    session = await manager.restore()

    assert session.user_id == USER_ID
    assert reconciler.calls == []


@pytest.mark.asyncio
async def test_sign_up_with_immediate_session(session_manager):
    session = await session_manager.sign_up("new@example.com", "pw123456")

    assert session.is_signed_in
    assert session.user_id is not None


@pytest.mark.asyncio
async def test_detach_stops_identity_events(database, local_store, remote):
    reconciler = CountingReconciler()
    manager = SessionManager(SupabaseIdentity(database), local_store, reconciler)
    manager.attach()
    manager.detach()

    await remote.auth.sign_in_with_password({"email": USER_EMAIL, "password": USER_PASSWORD})
    await drain()

    assert manager.is_guest
    assert reconciler.calls == []
