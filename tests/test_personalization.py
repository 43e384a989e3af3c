import pytest

from creatorkit.utils.personalization import (
    get_follower_tier,
    get_niche_emoji,
    get_personalized_chat_context,
    get_personalized_recommendations,
    get_personalized_welcome_message,
)
from creatorkit.utils.schemas import OnboardingData


@pytest.mark.parametrize("followers, tier_id", [
    (0, "starter"),
    (999, "starter"),
    (1_000, "rising"),
    (9_999, "rising"),
    (10_000, "influencer"),
    (100_000, "creator"),
    (1_000_000, "superstar"),
    (50_000_000, "superstar"),
])
def test_follower_tier_boundaries(followers, tier_id):
    assert get_follower_tier(followers).id == tier_id


@pytest.mark.parametrize("niche, emoji", [
    ("Fitness", "💪"),
    ("home fitness tips", "💪"),
    ("tech", "💻"),
    ("knitting", "🚀"),
    ("", "🚀"),
    (None, "🚀"),
])
def test_niche_emoji(niche, emoji):
    assert get_niche_emoji(niche) == emoji


def test_welcome_message():
    profile = OnboardingData(niche="travel", followers=500)

    assert get_personalized_welcome_message(None) == "Welcome back 👋"
    assert get_personalized_welcome_message(None, "sam") == "Welcome back, sam 👋"
    assert get_personalized_welcome_message(profile) == (
        "Welcome back, Creator 👋 Your journey as a travel creator continues!"
    )


def test_recommendations_niche_match():
    profile = OnboardingData(niche="Fitness", followers=200)

    assert get_personalized_recommendations(profile) == [
        "Create workout routine scripts for your audience",
        "Generate motivational fitness hooks",
        "Plan weekly fitness challenge content",
    ]


def test_recommendations_unknown_niche_are_templated():
    recommendations = get_personalized_recommendations(OnboardingData(niche="pottery", followers=50))

    assert len(recommendations) == 3
    assert all("pottery" in r for r in recommendations)


def test_recommendations_without_profile():
    assert get_personalized_recommendations(None)[0] == "Complete your profile to get personalized recommendations"


def test_chat_context():
    profile = OnboardingData(niche="gaming", followers=25_000, goal="Go full time")
    context = get_personalized_chat_context(profile)

    assert "gaming creator with 25.0K followers (Influencer tier)" in context
    assert "Their goal is: Go full time." in context
    assert get_personalized_chat_context(None).startswith("User is a content creator.")
