import logging
from dataclasses import dataclass
from typing import Optional

from creatorkit.config import Config
from creatorkit.storage.local_store import LocalStore, select_storage_engine
from creatorkit.database.connection import Database
from creatorkit.database.repositories.profile_repository import ProfileRepository
from creatorkit.database.repositories.saved_item_repository import SavedItemRepository
from creatorkit.database.repositories.usage_repository import UsageRepository
from creatorkit.database.repositories.conversation_repository import ConversationRepository
from creatorkit.database.repositories.message_repository import MessageRepository
from creatorkit.clients.supabase_auth import SupabaseIdentity
from creatorkit.clients.openai_api import CompletionClient
from creatorkit.core.session import SessionManager
from creatorkit.services.sync_service import SyncService
from creatorkit.services.quota_service import QuotaService
from creatorkit.services.conversation_service import ConversationService
from creatorkit.services.profile_service import ProfileService
from creatorkit.services.saved_item_service import SavedItemService
from creatorkit.services.ai_service import AIService

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class App:
    """Every component, wired once and passed around explicitly"""
    config: Config
    local_store: LocalStore
    database: Database
    session: SessionManager
    sync: SyncService
    quota: QuotaService
    conversations: ConversationService
    profile: ProfileService
    saved_items: SavedItemService
    completion: CompletionClient
    ai: AIService

    async def start(self) -> None:
        self.session.attach()
        await self.session.restore()
        await self.profile.load()

    async def close(self) -> None:
        self.session.detach()
        await self.completion.aclose()


def build_app(config: Config, database: Optional[Database] = None, identity=None,
              local_store: Optional[LocalStore] = None, http_client=None, today=None) -> App:
    """Construct and wire all components (no network calls)"""
    database = database or Database(config.supabase_url, config.supabase_anon_key)
    local_store = local_store or LocalStore(select_storage_engine(config.local_store_path))
    identity = identity or SupabaseIdentity(database)

    profile_repo = ProfileRepository(database)
    saved_item_repo = SavedItemRepository(database)

    sync = SyncService(local_store, profile_repo, saved_item_repo)
    session = SessionManager(identity, local_store, sync)
    quota = QuotaService(
        session, local_store, UsageRepository(database), profile_repo,
        max_text=config.max_text_requests,
        max_image=config.max_image_requests,
        pro_limit=config.pro_limit,
        today=today,
    )
    conversations = ConversationService(
        session, ConversationRepository(database), MessageRepository(database)
    )
    profile = ProfileService(session, local_store, profile_repo)
    saved_items = SavedItemService(session, local_store, saved_item_repo)
    completion = CompletionClient(
        config.openai_api_key,
        base_url=config.openai_base_url,
        model=config.openai_model,
        image_model=config.openai_image_model,
        timeout=config.completion_timeout,
        http_client=http_client,
    )
    ai = AIService(completion, quota)

    # Order matters: counters and profile reset before conversations reload
    session.subscribe(quota.on_session_change)
    session.subscribe(profile.on_session_change)
    session.subscribe(conversations.on_session_change)

    return App(
        config=config,
        local_store=local_store,
        database=database,
        session=session,
        sync=sync,
        quota=quota,
        conversations=conversations,
        profile=profile,
        saved_items=saved_items,
        completion=completion,
        ai=ai,
    )


async def create_app(config: Optional[Config] = None, **overrides) -> App:
    """Build the app from the environment, connect, and restore any session"""
    config = config or Config.from_env()
    configure_logging(config.log_level)
    config.log_status()

    app = build_app(config, **overrides)
    await app.database.initialize()
    await app.start()
    logger.info("🤖 creatorkit ready")
    return app
