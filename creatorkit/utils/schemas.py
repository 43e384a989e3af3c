from datetime import datetime
from typing import Any, Dict, List, Literal
from uuid import uuid4
from pydantic import BaseModel, Field, field_validator

SavedItemType = Literal["hook", "script", "caption", "calendar", "rewrite", "image"]


class OnboardingData(BaseModel):
    """Creator profile collected during onboarding"""
    platforms: List[str] = Field(default_factory=list)
    niche: str = ""
    followers: int = Field(0, ge=0)
    goal: str = ""

    @field_validator('platforms')
    @classmethod
    def dedupe_platforms(cls, v: List[str]) -> List[str]:
        """Platforms behave as a set; keep first-seen order"""
        seen = []
        for platform in v:
            platform = platform.strip()
            if platform and platform not in seen:
                seen.append(platform)
        return seen

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "platforms": ["tiktok", "instagram"],
                    "niche": "fitness",
                    "followers": 12500,
                    "goal": "Grow to 50K followers"
                }
            ]
        }
    }


class SavedItem(BaseModel):
    """Immutable record of a generated artifact"""
    id: str = Field(default_factory=lambda: str(uuid4()))
    type: SavedItemType
    title: str = Field(..., min_length=1)
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())

    model_config = {"frozen": True}


class QuotaUsageRecord(BaseModel):
    """Guest quota counters as persisted in the local store"""
    day: str
    text: int = Field(0, ge=0)
    image: int = Field(0, ge=0)


class ChatEntry(BaseModel):
    """Guest chat message cached locally"""
    id: str = Field(default_factory=lambda: str(uuid4()))
    type: Literal["user", "ai", "system"]
    content: str
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    kind: str = "chat"
