from uuid import uuid4
from typing import Optional, List
from creatorkit.database.connection import Database
from creatorkit.database.models import Message
from creatorkit.utils.formatters import parse_timestamp, utc_now


class MessageRepository:
    """Repository for managing conversation messages using Supabase SDK"""

    def __init__(self, database: Database):
        self.db = database

    async def add_message(self, user_id: str, conversation_id: str, role: str, content: str) -> Message:
        """Append a message to a conversation"""
        result = await self.db.table('messages').insert({
            'id': str(uuid4()),
            'conversation_id': conversation_id,
            'user_id': user_id,
            'role': role,
            'content': content,
            'created_at': utc_now().isoformat()
        }).execute()

        if not result.data:
            raise RuntimeError("Insert returned no row")
        return self._row_to_message(result.data[0])

    async def get_conversation_history(
        self,
        user_id: str,
        conversation_id: str,
        limit: Optional[int] = None
    ) -> List[Message]:
        """Get conversation messages, oldest first"""
        query = self.db.table('messages').select('*').eq(
            'conversation_id', conversation_id
        ).eq('user_id', user_id).order('created_at', desc=False)

        if limit:
            query = query.limit(limit)

        result = await query.execute()

        if result.data:
            return [self._row_to_message(row) for row in result.data]
        return []

    def _row_to_message(self, row: dict) -> Message:
        return Message(
            id=str(row['id']),
            conversation_id=str(row['conversation_id']),
            user_id=row['user_id'],
            content=row.get('content', ''),
            role=row['role'],
            created_at=parse_timestamp(row.get('created_at'))
        )
