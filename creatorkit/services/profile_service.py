import logging
from typing import Awaitable, Callable, List, Optional

from creatorkit.storage.local_store import LocalStore
from creatorkit.utils.schemas import OnboardingData
from creatorkit.utils.personalization import (
    FollowerTier,
    get_follower_tier,
    get_personalized_chat_context,
    get_personalized_recommendations,
    get_personalized_welcome_message,
)

logger = logging.getLogger(__name__)

ProfileListener = Callable[[Optional[OnboardingData]], Awaitable[None]]


class ProfileService:
    """Current creator profile plus the personalization derived from it.

    One instance is shared by every reader; changes are pushed to
    subscribers instead of being re-read from storage.
    """

    def __init__(self, session_manager, local_store: LocalStore, profile_repo=None):
        self.session_manager = session_manager
        self.local_store = local_store
        self.profile_repo = profile_repo
        self.profile: Optional[OnboardingData] = None
        self._listeners: List[ProfileListener] = []

    @property
    def is_personalized(self) -> bool:
        return self.profile is not None

    @property
    def follower_tier(self) -> FollowerTier:
        return get_follower_tier(self.profile.followers if self.profile else 0)

    @property
    def chat_context(self) -> str:
        return get_personalized_chat_context(self.profile)

    @property
    def recommendations(self) -> List[str]:
        return get_personalized_recommendations(self.profile) if self.profile else []

    def welcome_message(self, username: Optional[str] = None) -> str:
        return get_personalized_welcome_message(self.profile, username)

    def subscribe(self, listener: ProfileListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _set(self, profile: Optional[OnboardingData]) -> None:
        self.profile = profile
        for listener in list(self._listeners):
            try:
                await listener(profile)
            except Exception as e:
                logger.error(f"❌ Profile listener failed: {e}")

    async def load(self) -> Optional[OnboardingData]:
        """Local copy first; signed-in users fall back to their remote profile"""
        profile = await self.local_store.get_onboarding_data()
        user_id = self.session_manager.user_id
        if profile is None and user_id and self.profile_repo is not None:
            try:
                profile = await self.profile_repo.get_profile(user_id)
            except Exception as e:
                logger.warning(f"⚠️ Could not load remote profile: {e}")
            if profile is not None:
                await self.local_store.set_onboarding_data(profile)

        await self._set(profile)
        return profile

    async def update_profile(self, profile: OnboardingData) -> None:
        """Overwrite the current profile (onboarding or edit)"""
        await self.local_store.set_onboarding_data(profile)
        user_id = self.session_manager.user_id
        if user_id and self.profile_repo is not None:
            try:
                await self.profile_repo.upsert_profile(user_id, profile)
            except Exception as e:
                logger.warning(f"⚠️ Remote profile update failed, kept locally: {e}")

        await self._set(profile)
        logger.info(f"🎨 Profile updated: niche={profile.niche}, tier={self.follower_tier.label}")

    async def clear(self) -> None:
        await self.local_store.clear_onboarding_data()
        await self._set(None)

    async def on_session_change(self, session) -> None:
        if session.is_signed_in:
            await self.load()
        else:
            # Local store is already cleared; reset to defaults
            await self._set(None)
