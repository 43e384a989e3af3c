import logging
from typing import Optional
from supabase import acreate_client, AsyncClient

logger = logging.getLogger(__name__)


class Database:
    """Remote store connection manager using the async Supabase SDK"""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None,
                 client: Optional[AsyncClient] = None):
        self.url = url
        self.key = key
        self.client: Optional[AsyncClient] = client

    async def initialize(self):
        """Initialize Supabase client"""
        if self.client:
            return
        if not self.url or not self.key:
            raise ValueError(
                "Supabase credentials missing: Need SUPABASE_URL and SUPABASE_ANON_KEY in .env file"
            )
        try:
            self.client = await acreate_client(self.url, self.key)
            logger.info("✅ Supabase client initialized")
        except Exception as e:
            logger.error(f"❌ Failed to initialize Supabase client: {e}")
            raise

    def get_client(self) -> AsyncClient:
        """Get Supabase client"""
        if not self.client:
            raise RuntimeError("Supabase client not initialized. Call initialize() first.")
        return self.client

    def table(self, name: str):
        """Start a query against a table"""
        return self.get_client().table(name)
