# ==================================================================================
# core/config.py: FastAPI Configuration (Pydantic v2 settings, read from .env)
# ==================================================================================
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import ValidationError, field_validator
import logging
import sys

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # ------------------------
    # DATABASE CONFIG
    # ------------------------
    # Backing database of the document store adapter
    DATABASE_URL: str = "sqlite:///./ledgerly.db"

    # ------------------------
    # SECURITY CONFIG
    # ------------------------
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ------------------------
    # FRONTEND CONFIG
    # ------------------------
    FRONTEND_URL: str = "http://localhost:5173"

    # ------------------------
    # FILE STORAGE
    # ------------------------
    UPLOAD_DIR: str = "uploads"
    STATIC_URL: str = "/static"

    # ------------------------
    # INVOICING
    # ------------------------
    DEFAULT_INVOICE_PREFIX: str = "INV"
    TRANSACTION_MAX_ATTEMPTS: int = 5
    TRANSACTION_RETRY_DELAY: float = 0.05  # seconds, doubled on each retry

    # ------------------------
    # ENVIRONMENT SETTINGS
    # ------------------------
    ENVIRONMENT: str = "development"  # 'development' | 'production'
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    @field_validator("TRANSACTION_MAX_ATTEMPTS")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        if value < 1:
            raise ValueError("TRANSACTION_MAX_ATTEMPTS must be at least 1")
        return value

    @field_validator("DEFAULT_INVOICE_PREFIX")
    @classmethod
    def _short_prefix(cls, value: str) -> str:
        value = value.strip().upper()
        if not value or len(value) > 5 or not value.isalnum():
            raise ValueError("DEFAULT_INVOICE_PREFIX must be 1-5 alphanumeric characters")
        return value

    @property
    def IS_PRODUCTION(self) -> bool:
        """Convenience helper to check if running in production"""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def CORS_ORIGINS(self) -> list[str]:
        return [self.FRONTEND_URL, "http://127.0.0.1:5173"]

    # ------------------------
    # Pydantic v2 Settings
    # ------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# ------------------------
# Global Settings Loader
# ------------------------
try:
    settings = Settings()
    logger.info("Environment variables loaded. Environment: %s, Debug: %s", settings.ENVIRONMENT, settings.DEBUG)
except ValidationError as e:
    print("❌ Environment configuration error: missing or invalid settings!")
    print(e)
    sys.exit(1)
