import asyncio
import logging
from typing import Callable, Dict, List, Optional

from creatorkit.clients.openai_api import CompletionClient
from creatorkit.core.errors import QuotaExceededError
from creatorkit.utils.schemas import OnboardingData
from creatorkit.utils.formatters import format_followers
from creatorkit.utils.personalization import get_personalized_chat_context

logger = logging.getLogger(__name__)


class AIService:
    def __init__(self, client: CompletionClient, quota_service=None):
        self.client = client
        self.quota_service = quota_service

    def build_messages(self, kind: str, profile: Optional[OnboardingData], text: str) -> List[Dict]:
        """System prompt tailored to the creator profile, then the request"""
        platforms = ", ".join(profile.platforms) if profile and profile.platforms else "General"
        niche = profile.niche if profile and profile.niche else "General"
        followers = format_followers(profile.followers) if profile else "0"
        goal = profile.goal if profile and profile.goal else "Growth"

        system_prompt = f"""You are an expert social media growth coach. Tailor your outputs to the user's profile and create engaging, platform-appropriate content.

User Profile:
- Platforms: {platforms}
- Niche: {niche}
- Followers: {followers}
- Goal: {goal}

{get_personalized_chat_context(profile)}

Guidelines:
- For scripts: Create 30-60 second content with Hook → Value → CTA structure. Include suggested posting times.
- For hooks: Create compelling opening lines under 12 words that grab attention immediately.
- For captions: Match the platform style, include relevant hashtags, and maintain brand voice.
- For calendars: Provide 7-day content plans with specific posting schedules and content types.
- For rewrites: Adapt content for different platforms while maintaining the core message.
- Always include a clear call-to-action and suggest optimal posting times when relevant.
- Keep content authentic, engaging, and tailored to the user's niche and follower count."""

        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": f"Create {kind} content: {text}"},
        ]

    async def _check_quota(self, kind: str) -> None:
        if self.quota_service is None:
            return
        if not await self.quota_service.can_use(kind):
            raise QuotaExceededError(kind, await self.quota_service.remaining(kind))

    async def _count(self, kind: str) -> None:
        if self.quota_service is not None:
            await self.quota_service.increment(kind)

    async def generate(self, kind: str, profile: Optional[OnboardingData], text: str,
                       n: int = 3) -> List[str]:
        """Several alternative generations in one request"""
        await self._check_quota("text")
        results = await self.client.chat_completion(self.build_messages(kind, profile, text), n=n)
        await self._count("text")
        return results

    async def generate_stream(self, kind: str, profile: Optional[OnboardingData], text: str,
                              on_fragment: Optional[Callable[[str], None]] = None,
                              cancel_event: Optional[asyncio.Event] = None) -> str:
        """Single generation rendered progressively through on_fragment"""
        await self._check_quota("text")
        result = await self.client.stream_chat_completion(
            self.build_messages(kind, profile, text),
            on_fragment=on_fragment,
            cancel_event=cancel_event,
        )
        await self._count("text")
        return result

    async def generate_image(self, prompt: str, size: str = "1024x1024") -> str:
        await self._check_quota("image")
        url = await self.client.generate_image(prompt, size)
        await self._count("image")
        logger.info("✅ Image generation completed")
        return url
