from typing import Dict
from creatorkit.database.connection import Database


class UsageRepository:
    """Repository for daily usage counters (usage_log) using Supabase SDK"""

    def __init__(self, database: Database):
        self.db = database

    async def get_daily_counts(self, user_id: str, day: str) -> Dict[str, int]:
        """Counts per kind for one day; kinds with no row are absent"""
        result = await self.db.table('usage_log').select('kind, count').eq(
            'user_id', user_id
        ).eq('day', day).execute()

        return {row['kind']: int(row.get('count') or 0) for row in result.data or []}

    async def set_count(self, user_id: str, kind: str, day: str, count: int) -> None:
        """Write the counter for (user, kind, day)"""
        await self.db.table('usage_log').upsert({
            'user_id': user_id,
            'kind': kind,
            'day': day,
            'count': count
        }, on_conflict='user_id,kind,day').execute()
