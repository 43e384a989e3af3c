from dataclasses import dataclass
from typing import List, Optional
from creatorkit.utils.schemas import OnboardingData
from creatorkit.utils.formatters import format_followers


@dataclass(frozen=True)
class FollowerTier:
    id: str
    label: str
    min: int
    max: Optional[int]
    badge: str


FOLLOWER_TIERS = [
    FollowerTier("starter", "Starter", 0, 1_000, "🌱"),
    FollowerTier("rising", "Rising Star", 1_000, 10_000, "⭐"),
    FollowerTier("influencer", "Influencer", 10_000, 100_000, "🔥"),
    FollowerTier("creator", "Top Creator", 100_000, 1_000_000, "👑"),
    FollowerTier("superstar", "Superstar", 1_000_000, None, "💎"),
]

NICHE_EMOJIS = {
    "fitness": "💪",
    "tech": "💻",
    "fashion": "👗",
    "music": "🎵",
    "food": "🍕",
    "beauty": "💄",
    "travel": "✈️",
    "gaming": "🎮",
    "business": "💼",
    "lifestyle": "🌟",
    "comedy": "😂",
}
DEFAULT_EMOJI = "🚀"

DEFAULT_WELCOME = "Welcome back 👋"
DEFAULT_CHAT_CONTEXT = "User is a content creator. Provide general social media growth advice."

NICHE_RECOMMENDATIONS = {
    "fitness": [
        "Create workout routine scripts for your audience",
        "Generate motivational fitness hooks",
        "Plan weekly fitness challenge content",
    ],
    "tech": [
        "Write tech review scripts and tutorials",
        "Create hooks about latest tech trends",
        "Plan educational tech content calendar",
    ],
    "fashion": [
        "Generate outfit inspiration captions",
        "Create fashion trend hooks",
        "Plan seasonal fashion content",
    ],
    "food": [
        "Create recipe video scripts",
        "Generate food photography captions",
        "Plan weekly cooking content",
    ],
    "music": [
        "Write music review and reaction scripts",
        "Create hooks about music trends",
        "Plan music discovery content",
    ],
}

TIER_RECOMMENDATIONS = {
    "starter": [
        "Focus on consistent posting to grow your audience",
        "Use trending hashtags to increase visibility",
    ],
    "rising": [
        "Engage with your community to build loyalty",
        "Consider collaborations with similar creators",
    ],
    "influencer": [
        "Explore monetization opportunities",
        "Create exclusive content for your top followers",
    ],
}


def get_follower_tier(followers: int) -> FollowerTier:
    for tier in FOLLOWER_TIERS:
        if followers >= tier.min and (tier.max is None or followers < tier.max):
            return tier
    return FOLLOWER_TIERS[0]


def get_niche_emoji(niche: Optional[str]) -> str:
    """Exact niche match first, then partial match either way"""
    if not niche:
        return DEFAULT_EMOJI
    normalized = niche.lower()
    if normalized in NICHE_EMOJIS:
        return NICHE_EMOJIS[normalized]
    for key, emoji in NICHE_EMOJIS.items():
        if key in normalized or normalized in key:
            return emoji
    return DEFAULT_EMOJI


def get_personalized_welcome_message(profile: Optional[OnboardingData], username: Optional[str] = None) -> str:
    if profile is None:
        return f"Welcome back, {username} 👋" if username else DEFAULT_WELCOME
    return (
        f"Welcome back, {username or 'Creator'} 👋 Your journey as a "
        f"{profile.niche or 'Content'} creator continues!"
    )


def get_personalized_recommendations(profile: Optional[OnboardingData]) -> List[str]:
    """Top three suggestions for the profile"""
    if profile is None:
        return [
            "Complete your profile to get personalized recommendations",
            "Start with our Hook Generator for engaging content",
            "Try the Script Generator for video content",
        ]

    niche = (profile.niche or "").lower()
    recommendations = next(
        (list(items) for key, items in NICHE_RECOMMENDATIONS.items() if key in niche),
        [
            f"Create {profile.niche} content that resonates",
            f"Generate hooks for {profile.niche} audience",
            f"Plan consistent {profile.niche} content calendar",
        ],
    )
    recommendations.extend(TIER_RECOMMENDATIONS.get(get_follower_tier(profile.followers).id, []))
    return recommendations[:3]


def get_personalized_chat_context(profile: Optional[OnboardingData]) -> str:
    if profile is None:
        return DEFAULT_CHAT_CONTEXT

    tier = get_follower_tier(profile.followers)
    return (
        f"User is a {profile.niche or 'content'} creator with {format_followers(profile.followers)} "
        f"followers ({tier.label} tier). Their goal is: {profile.goal or 'to grow their audience'}. "
        "Tailor advice, tone, and examples to match their niche and follower level. "
        "Reference their specific niche naturally in responses and provide actionable advice "
        "appropriate for their tier."
    )
