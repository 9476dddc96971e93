"""
Application Configuration — Environment & Settings
Process-level settings come from .env via Pydantic Settings.
Business options (gateway choice, link numbering, status maps) live in the
`options` table and are read through OptionService.
"""
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings

# Resolve paths relative to backend/ directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Core ---
    APP_NAME: str = "Opsdesk Payments API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # --- Database ---
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'data' / 'opsdesk.db'}"

    # --- Security ---
    CORS_ORIGINS: list[str] = ["*"]

    # --- Payment Gateways ---
    GATEWAY_SANDBOX: bool = False
    GATEWAY_TIMEOUT_SECONDS: float = 15.0
    GATEWAY_MAX_RETRIES: int = 3
    GATEWAY_RETRY_BACKOFF_SECONDS: float = 0.5
    DEFAULT_CURRENCY: str = "INR"
    LINK_STATUS_CREATED: int = 0

    CASHFREE_PG_URL: str = "https://api.cashfree.com/pg"
    CASHFREE_PG_SANDBOX_URL: str = "https://sandbox.cashfree.com/pg"
    CASHFREE_PAYOUT_URL: str = "https://api.cashfree.com/payout"
    CASHFREE_PAYOUT_SANDBOX_URL: str = "https://sandbox.cashfree.com/payout"
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"

    # --- Notifications ---
    WHATSAPP_API_URL: str = ""
    WHATSAPP_API_TOKEN: str = ""
    WHATSAPP_PAYMENT_LINK_TEMPLATE: str = "payment_link"
    EMAIL_API_URL: str = ""
    EMAIL_API_TOKEN: str = ""
    EMAIL_SENDER: str = "accounts@opsdesk.local"

    # --- Logging ---
    LOG_DIR: str = str(BASE_DIR / "logs")
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
