from uuid import uuid4
from typing import Optional, List
from datetime import datetime
from creatorkit.database.connection import Database
from creatorkit.database.models import Conversation
from creatorkit.utils.formatters import parse_timestamp, utc_now


class ConversationRepository:
    """Repository for managing conversations using Supabase SDK"""

    def __init__(self, database: Database):
        self.db = database

    async def create_conversation(self, user_id: str, title: str, emoji: str) -> Conversation:
        """
        Create a new active conversation

        Every other conversation of the user is deactivated first; the two
        writes are awaited in sequence.

        Args:
            user_id: User ID
            title: Conversation title
            emoji: Emoji shown next to the title

        Returns:
            The created conversation
        """
        await self.deactivate_all_conversations(user_id)

        now = utc_now().isoformat()
        result = await self.db.table('conversations').insert({
            'id': str(uuid4()),
            'user_id': user_id,
            'title': title,
            'emoji': emoji,
            'is_active': True,
            'last_message_at': now,
            'created_at': now,
            'updated_at': now
        }).execute()

        if not result.data:
            raise RuntimeError("Insert returned no row")
        return self._row_to_conversation(result.data[0])

    async def get_user_conversations(self, user_id: str) -> List[Conversation]:
        """Get all conversations for a user, most recently active first"""
        result = await self.db.table('conversations').select('*').eq(
            'user_id', user_id
        ).order('last_message_at', desc=True).execute()

        if result.data:
            return [self._row_to_conversation(row) for row in result.data]
        return []

    async def get_conversation_by_id(self, user_id: str, conversation_id: str) -> Optional[Conversation]:
        """Get conversation by ID"""
        result = await self.db.table('conversations').select('*').eq(
            'id', conversation_id
        ).eq('user_id', user_id).execute()

        if result.data:
            return self._row_to_conversation(result.data[0])
        return None

    async def set_active_conversation(self, user_id: str, conversation_id: str) -> Optional[Conversation]:
        """Set a conversation as active (deactivates others); None if it does not exist"""
        # Re-read right before writing
        existing = await self.get_conversation_by_id(user_id, conversation_id)
        if existing is None:
            return None

        await self.deactivate_all_conversations(user_id)

        result = await self.db.table('conversations').update({
            'is_active': True
        }).eq('id', conversation_id).eq('user_id', user_id).execute()

        if not result.data:
            return None
        return self._row_to_conversation(result.data[0])

    async def deactivate_all_conversations(self, user_id: str) -> None:
        """Deactivate all conversations for a user"""
        await self.db.table('conversations').update({
            'is_active': False
        }).eq('user_id', user_id).eq('is_active', True).execute()

    async def update_conversation(self, user_id: str, conversation_id: str, updates: dict) -> Optional[Conversation]:
        """Apply field updates and bump updated_at"""
        values = dict(updates)
        values['updated_at'] = utc_now().isoformat()

        result = await self.db.table('conversations').update(values).eq(
            'id', conversation_id
        ).eq('user_id', user_id).execute()

        if not result.data:
            return None
        return self._row_to_conversation(result.data[0])

    async def touch_last_message(self, user_id: str, conversation_id: str, at: datetime) -> Optional[Conversation]:
        """Advance last_message_at after a message was appended"""
        return await self.update_conversation(user_id, conversation_id, {
            'last_message_at': at.isoformat()
        })

    async def delete_conversation(self, user_id: str, conversation_id: str) -> bool:
        """Delete a conversation (messages cascade in the database)"""
        result = await self.db.table('conversations').delete().eq(
            'id', conversation_id
        ).eq('user_id', user_id).execute()

        return bool(result.data)

    def _row_to_conversation(self, row: dict) -> Conversation:
        """Convert database row to Conversation model"""
        return Conversation(
            id=str(row['id']),
            user_id=row['user_id'],
            title=row.get('title') or '',
            emoji=row.get('emoji') or '💬',
            is_active=bool(row.get('is_active', False)),
            last_message_at=parse_timestamp(row.get('last_message_at')),
            created_at=parse_timestamp(row.get('created_at')),
            updated_at=parse_timestamp(row.get('updated_at'))
        )
