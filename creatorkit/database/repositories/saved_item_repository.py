from typing import List
from creatorkit.database.connection import Database
from creatorkit.utils.schemas import SavedItem


class SavedItemRepository:
    """Repository for saved artifacts using Supabase SDK"""

    def __init__(self, database: Database):
        self.db = database

    async def upsert_item(self, user_id: str, item: SavedItem) -> None:
        """Insert or overwrite by the item's id, so re-syncing never duplicates"""
        await self.db.table('saved_items').upsert({
            'id': item.id,
            'user_id': user_id,
            'type': item.type,
            'title': item.title,
            'payload': item.payload,
            'created_at': item.created_at
        }, on_conflict='id').execute()

    async def get_user_items(self, user_id: str) -> List[SavedItem]:
        """Get all saved items for a user, newest first"""
        result = await self.db.table('saved_items').select('*').eq(
            'user_id', user_id
        ).order('created_at', desc=True).execute()

        return [
            SavedItem(
                id=str(row['id']),
                type=row['type'],
                title=row['title'],
                payload=row.get('payload') or {},
                created_at=str(row.get('created_at', ''))
            )
            for row in result.data or []
        ]

    async def delete_item(self, user_id: str, item_id: str) -> bool:
        result = await self.db.table('saved_items').delete().eq(
            'id', item_id
        ).eq('user_id', user_id).execute()

        return bool(result.data)
