import logging
from dataclasses import dataclass, field
from typing import List

from creatorkit.storage.local_store import LocalStore
from creatorkit.database.repositories.profile_repository import ProfileRepository
from creatorkit.database.repositories.saved_item_repository import SavedItemRepository

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Outcome of one reconciliation run"""
    user_id: str
    profile_synced: bool = False
    items_synced: int = 0
    failed_item_ids: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class SyncService:
    """One-way merge of local data into the remote store on sign-in.

    Upserts only, keyed by natural id, so running it again is harmless.
    Nothing is deleted on either side and no failure is raised: the local
    store stays the source of truth until a later sync succeeds.
    """

    def __init__(self, local_store: LocalStore, profile_repo: ProfileRepository,
                 saved_item_repo: SavedItemRepository):
        self.local_store = local_store
        self.profile_repo = profile_repo
        self.saved_item_repo = saved_item_repo

    async def reconcile(self, user_id: str) -> SyncReport:
        logger.info(f"🔄 Syncing local data to remote for user {user_id}")
        report = SyncReport(user_id=user_id)

        await self._sync_profile(user_id, report)
        await self._sync_saved_items(user_id, report)

        if report.ok:
            logger.info(f"✅ Sync done: profile={report.profile_synced}, items={report.items_synced}")
        else:
            logger.warning(f"⚠️ Sync finished with {len(report.errors)} error(s) for user {user_id}")
        return report

    async def _sync_profile(self, user_id: str, report: SyncReport) -> None:
        try:
            profile = await self.local_store.get_onboarding_data()
            if profile is None:
                return
            await self.profile_repo.upsert_profile(user_id, profile)
            report.profile_synced = True
        except Exception as e:
            logger.error(f"❌ Error syncing profile: {e}")
            report.errors.append(f"profile: {e}")

    async def _sync_saved_items(self, user_id: str, report: SyncReport) -> None:
        try:
            items = await self.local_store.get_saved_items()
        except Exception as e:
            logger.error(f"❌ Error reading saved items: {e}")
            report.errors.append(f"saved_items: {e}")
            return

        for item in items:
            try:
                await self.saved_item_repo.upsert_item(user_id, item)
                report.items_synced += 1
            except Exception as e:
                logger.error(f"❌ Error syncing saved item {item.id}: {e}")
                report.failed_item_ids.append(item.id)
                report.errors.append(f"saved_item {item.id}: {e}")
