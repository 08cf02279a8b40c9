# ==================================================================================
# core/config.py — PackRocket Configuration (Stripe + Airtable + Pydantic v2)
# ==================================================================================
from typing import Dict, List, Optional
from urllib.parse import quote

from dotenv import load_dotenv
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
import logging
import sys

load_dotenv()
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # ------------------------
    # DATABASE CONFIG
    # ------------------------
    DATABASE_URL: str = "sqlite:///./packrocket.db"

    # ------------------------
    # STRIPE / PAYMENT CONFIG
    # ------------------------
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_PRICE_STARTER: Optional[str] = None
    STRIPE_PRICE_PRO: Optional[str] = None
    STRIPE_PRICE_ENTERPRISE: Optional[str] = None

    # ------------------------
    # AIRTABLE MIRROR CONFIG
    # ------------------------
    AIRTABLE_API_KEY: Optional[str] = None
    AIRTABLE_BASE_ID: Optional[str] = None
    AIRTABLE_TABLE_NAME: str = "Movers"
    AIRTABLE_API_URL: str = "https://api.airtable.com/v0"
    AIRTABLE_TIMEOUT_SECONDS: float = 10.0

    # ------------------------
    # FRONTEND & BACKEND CONFIG
    # ------------------------
    PUBLIC_URL: str = "https://fortuitous-book-118427.framer.app"
    BACKEND_URL: str = "http://localhost:5050"
    CORS_ORIGINS: List[str] = ["*"]

    # ------------------------
    # UPLOADS
    # ------------------------
    UPLOAD_DIR: str = "./uploads"
    MAX_LOGO_SIZE_MB: int = 5

    # ------------------------
    # ENVIRONMENT SETTINGS
    # ------------------------
    ENVIRONMENT: str = "development"  # 'development' | 'production'
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    @property
    def price_ids(self) -> Dict[str, Optional[str]]:
        """Stripe price id per plan name."""
        return {
            "Starter": self.STRIPE_PRICE_STARTER,
            "Pro": self.STRIPE_PRICE_PRO,
            "Enterprise": self.STRIPE_PRICE_ENTERPRISE,
        }

    @property
    def airtable_configured(self) -> bool:
        return bool(self.AIRTABLE_API_KEY and self.AIRTABLE_BASE_ID and self.AIRTABLE_TABLE_NAME)

    def checkout_success_url(self, email: str) -> str:
        return f"{self.PUBLIC_URL}/dashboard?session_id={{CHECKOUT_SESSION_ID}}&email={quote(email, safe='')}"

    @property
    def checkout_cancel_url(self) -> str:
        return f"{self.PUBLIC_URL}/signup?canceled=1"

    def billing_return_url(self, email: str) -> str:
        return f"{self.PUBLIC_URL}/dashboard?email={quote(email, safe='')}"

    # ------------------------
    # Pydantic v2 Settings
    # ------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignores unknown env vars (hosting defaults)
    )


# ------------------------
# Global Settings Loader
# ------------------------
try:
    settings = Settings()
    logger.info(f"🌍 Environment: {settings.ENVIRONMENT}, Debug: {settings.DEBUG}")
except ValidationError as e:
    logger.error(f"❌ Environment configuration error: missing or invalid settings!\n{e}")
    sys.exit(1)
