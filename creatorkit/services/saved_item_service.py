import logging
from typing import Any, Dict, List

from creatorkit.storage.local_store import LocalStore
from creatorkit.utils.schemas import SavedItem

logger = logging.getLogger(__name__)


class SavedItemService:
    """Saved artifacts: local store always, remote store when signed in"""

    def __init__(self, session_manager, local_store: LocalStore, saved_item_repo=None):
        self.session_manager = session_manager
        self.local_store = local_store
        self.saved_item_repo = saved_item_repo

    async def list(self) -> List[SavedItem]:
        return await self.local_store.get_saved_items()

    async def save(self, type: str, title: str, payload: Dict[str, Any]) -> SavedItem:
        item = SavedItem(type=type, title=title, payload=payload)
        await self.local_store.add_saved_item(item)

        user_id = self.session_manager.user_id
        if user_id and self.saved_item_repo is not None:
            try:
                await self.saved_item_repo.upsert_item(user_id, item)
            except Exception as e:
                logger.warning(f"⚠️ Saved item {item.id} kept locally only: {e}")

        logger.info(f"✅ Saved {item.type}: {item.title}")
        return item

    async def delete(self, item_id: str) -> None:
        await self.local_store.remove_saved_item(item_id)

        user_id = self.session_manager.user_id
        if user_id and self.saved_item_repo is not None:
            try:
                await self.saved_item_repo.delete_item(user_id, item_id)
            except Exception as e:
                logger.warning(f"⚠️ Remote delete of saved item {item_id} failed: {e}")
