from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Conversation:
    """Conversation model"""
    id: str
    user_id: str
    title: str
    emoji: str
    is_active: bool
    last_message_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    def with_active(self, is_active: bool) -> "Conversation":
        return replace(self, is_active=is_active)


@dataclass(frozen=True)
class Message:
    """Message model"""
    id: str
    conversation_id: str
    user_id: str
    content: str
    role: str
    created_at: Optional[datetime]
