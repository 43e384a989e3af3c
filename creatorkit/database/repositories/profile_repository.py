from typing import Optional
from creatorkit.database.connection import Database
from creatorkit.utils.schemas import OnboardingData
from creatorkit.utils.formatters import utc_now


class ProfileRepository:
    """Repository for managing creator profiles using Supabase SDK"""

    def __init__(self, database: Database):
        self.db = database

    async def upsert_profile(self, user_id: str, profile: OnboardingData) -> None:
        """Create or overwrite the profile row keyed by the user's id"""
        await self.db.table('profiles').upsert({
            'id': user_id,
            'platforms': list(profile.platforms),
            'niche': profile.niche,
            'followers': profile.followers,
            'goal': profile.goal,
            'updated_at': utc_now().isoformat()
        }, on_conflict='id').execute()

    async def get_profile(self, user_id: str) -> Optional[OnboardingData]:
        """Get profile by user id"""
        result = await self.db.table('profiles').select('*').eq('id', user_id).execute()

        if result.data:
            row = result.data[0]
            return OnboardingData(
                platforms=row.get('platforms') or [],
                niche=row.get('niche') or '',
                followers=row.get('followers') or 0,
                goal=row.get('goal') or ''
            )
        return None

    async def is_pro(self, user_id: str) -> bool:
        """Whether the user has an active Pro entitlement"""
        result = await self.db.table('profiles').select('is_pro').eq('id', user_id).execute()

        if result.data:
            return bool(result.data[0].get('is_pro'))
        return False
