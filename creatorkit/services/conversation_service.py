"""
Conversation list and messages for the signed-in user.

At most one conversation per user is active. Activation always runs as two
awaited writes in order: deactivate every conversation, then activate one.
Remote failures are raised as ConversationError and in-memory state is only
touched after every remote call of an operation has succeeded.
"""
import logging
from datetime import datetime, timezone
from typing import Awaitable, List, Optional, TypeVar

from creatorkit.core.errors import ConversationError, NotSignedInError
from creatorkit.database.models import Conversation, Message
from creatorkit.database.repositories.conversation_repository import ConversationRepository
from creatorkit.database.repositories.message_repository import MessageRepository
from creatorkit.utils.formatters import utc_now

logger = logging.getLogger(__name__)

ROLES = ("user", "assistant")
DEFAULT_EMOJI = "💬"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

T = TypeVar("T")


def _by_recency(conversations: List[Conversation]) -> List[Conversation]:
    return sorted(conversations, key=lambda c: c.last_message_at or _EPOCH, reverse=True)


class ConversationService:
    """In-memory view of the user's conversations, kept in step with the remote store"""

    def __init__(self, session_manager, conversation_repo: ConversationRepository,
                 message_repo: MessageRepository):
        self.session_manager = session_manager
        self.conversation_repo = conversation_repo
        self.message_repo = message_repo

        self.conversations: List[Conversation] = []
        self.current_conversation: Optional[Conversation] = None
        self.messages: List[Message] = []
        self.is_loading = False
        self.error: Optional[str] = None

    def _require_user(self) -> str:
        user_id = self.session_manager.user_id
        if user_id is None:
            raise NotSignedInError("Conversations need a signed-in user")
        return user_id

    async def _call(self, operation: str, pending: Awaitable[T]) -> T:
        try:
            return await pending
        except Exception as e:
            self.error = str(e) or type(e).__name__
            logger.error(f"❌ Error in conversation {operation}: {self.error}")
            raise ConversationError(operation, self.error) from e

    def active_count(self) -> int:
        return sum(1 for c in self.conversations if c.is_active)

    def get(self, conversation_id: str) -> Optional[Conversation]:
        return next((c for c in self.conversations if c.id == conversation_id), None)

    async def load_conversations(self) -> List[Conversation]:
        user_id = self.session_manager.user_id
        if user_id is None:
            self.clear_all()
            return []

        self.is_loading = True
        self.error = None
        try:
            conversations = await self._call(
                "load", self.conversation_repo.get_user_conversations(user_id)
            )
        finally:
            self.is_loading = False

        self.conversations = _by_recency(conversations)
        logger.info(f"💬 Loaded {len(conversations)} conversations")
        return self.conversations

    async def create(self, title: str, emoji: str = DEFAULT_EMOJI) -> Conversation:
        user_id = self._require_user()
        self.error = None

        conversation = await self._call(
            "create", self.conversation_repo.create_conversation(user_id, title, emoji)
        )

        self.conversations = [conversation] + [
            c.with_active(False) for c in self.conversations if c.id != conversation.id
        ]
        self.current_conversation = conversation
        self.messages = []
        logger.info(f"✅ Conversation created: {conversation.id}")
        return conversation

    async def select(self, conversation_id: str) -> Conversation:
        user_id = self._require_user()
        self.error = None

        selected = await self._call(
            "select", self.conversation_repo.set_active_conversation(user_id, conversation_id)
        )
        if selected is None:
            self.error = f"Conversation {conversation_id} not found"
            raise ConversationError("select", self.error)

        messages = await self._call(
            "select", self.message_repo.get_conversation_history(user_id, conversation_id)
        )

        if self.get(conversation_id) is None:
            conversations = self.conversations + [selected]
        else:
            conversations = self.conversations
        self.conversations = _by_recency([
            selected if c.id == conversation_id else c.with_active(False)
            for c in conversations
        ])
        self.current_conversation = selected
        self.messages = messages
        logger.info(f"✅ Conversation selected: {conversation_id}")
        return selected

    async def update(self, conversation_id: str, title: Optional[str] = None,
                     emoji: Optional[str] = None) -> Optional[Conversation]:
        user_id = self._require_user()
        updates = {}
        if title is not None:
            updates['title'] = title
        if emoji is not None:
            updates['emoji'] = emoji
        if not updates:
            return self.get(conversation_id)

        self.error = None
        updated = await self._call(
            "update", self.conversation_repo.update_conversation(user_id, conversation_id, updates)
        )
        if updated is None:
            self.error = f"Conversation {conversation_id} not found"
            raise ConversationError("update", self.error)

        self._replace(updated)
        return self.get(conversation_id)

    async def delete(self, conversation_id: str) -> None:
        user_id = self._require_user()
        self.error = None

        await self._call(
            "delete", self.conversation_repo.delete_conversation(user_id, conversation_id)
        )

        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        if self.current_conversation and self.current_conversation.id == conversation_id:
            self.current_conversation = None
            self.messages = []
        logger.info(f"🗑️ Conversation deleted: {conversation_id}")

    async def load_messages(self, conversation_id: str) -> List[Message]:
        user_id = self._require_user()
        self.error = None

        messages = await self._call(
            "load_messages", self.message_repo.get_conversation_history(user_id, conversation_id)
        )
        self.messages = messages
        return messages

    async def add_message(self, conversation_id: str, content: str, role: str) -> Message:
        """Append a message, then move its conversation to the top of the list"""
        if role not in ROLES:
            raise ValueError(f"Unknown message role: {role}")
        user_id = self._require_user()
        self.error = None

        message = await self._call(
            "add_message", self.message_repo.add_message(user_id, conversation_id, role, content)
        )
        updated = await self._call(
            "add_message",
            self.conversation_repo.touch_last_message(
                user_id, conversation_id, message.created_at or utc_now()
            )
        )
        if updated is None:
            self.error = f"Conversation {conversation_id} not found"
            raise ConversationError("add_message", self.error)

        self._replace(updated)
        self.conversations = _by_recency(self.conversations)
        if self.current_conversation and self.current_conversation.id == conversation_id:
            self.messages = self.messages + [message]
        return message

    def _replace(self, updated: Conversation) -> None:
        """Swap in a fresh row, keeping the in-memory active flag"""
        existing = self.get(updated.id)
        if existing is not None:
            updated = updated.with_active(existing.is_active)
            self.conversations = [updated if c.id == updated.id else c for c in self.conversations]
        if self.current_conversation and self.current_conversation.id == updated.id:
            self.current_conversation = updated

    def clear_current(self) -> None:
        self.current_conversation = None
        self.messages = []

    def clear_all(self) -> None:
        self.conversations = []
        self.current_conversation = None
        self.messages = []
        self.error = None
        self.is_loading = False

    async def on_session_change(self, session) -> None:
        if session.is_signed_in:
            self.clear_all()
            try:
                await self.load_conversations()
            except ConversationError:
                # Already logged; the list stays empty until the next load
                pass
        else:
            self.clear_all()
