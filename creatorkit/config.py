import os
import logging
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env file (current directory first, then project root)
load_dotenv()
load_dotenv(os.path.join(os.path.dirname(__file__), '..', '.env'))

DEFAULT_LOCAL_STORE_PATH = os.path.join(os.path.expanduser("~"), ".creatorkit", "local_store.json")


@dataclass
class Config:
    """Configuration values for all components"""

    # Supabase (auth + relational storage)
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None

    # Completion service
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_image_model: str = "dall-e-3"
    completion_timeout: float = 60.0

    # Local store ("" selects the in-memory engine)
    local_store_path: str = DEFAULT_LOCAL_STORE_PATH

    # Daily limits
    max_text_requests: int = 10
    max_image_requests: int = 1
    pro_limit: int = 999999

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Build config from environment variables"""
        return cls(
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            openai_image_model=os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3"),
            completion_timeout=float(os.getenv("COMPLETION_TIMEOUT", "60")),
            local_store_path=os.getenv("LOCAL_STORE_PATH", DEFAULT_LOCAL_STORE_PATH),
            max_text_requests=int(os.getenv("MAX_TEXT_REQUESTS", "10")),
            max_image_requests=int(os.getenv("MAX_IMAGE_REQUESTS", "1")),
            pro_limit=int(os.getenv("PRO_LIMIT", "999999")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def log_status(self) -> None:
        """Log which credentials are configured (never the values)"""
        logger.info("🔧 Config loaded:")
        logger.info(f"   OPENAI_MODEL: {self.openai_model}")
        logger.info(f"   OPENAI_API_KEY: {'✅ SET' if self.openai_api_key else '❌ NOT SET'}")
        logger.info(f"   SUPABASE_URL: {'✅ SET' if self.supabase_url else '❌ NOT SET'}")
        logger.info(f"   SUPABASE_ANON_KEY: {'✅ SET' if self.supabase_anon_key else '❌ NOT SET'}")
        logger.info(f"   LOCAL_STORE_PATH: {self.local_store_path or '(in-memory)'}")
