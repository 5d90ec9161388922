"""
Application configuration using Pydantic Settings.

Values are read from environment variables and an optional .env file.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # General
    # ===========================================
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/prompt-tester.db"

    # Seed the model catalog with a few well-known models on first start
    SEED_DEFAULT_MODELS: bool = True

    # ===========================================
    # Credentials
    # ===========================================
    # Master secret for API key encryption at rest.
    # Must be at least 32 characters; shorter values fall back to a derived key.
    ENCRYPTION_KEY: str = ""

    # ===========================================
    # Model provider (OpenRouter-compatible)
    # ===========================================
    OPENROUTER_API_BASE: str = "https://openrouter.ai/api/v1"
    OPENROUTER_REFERER: str = "http://localhost:3000"
    OPENROUTER_TITLE: str = "Prompt Tester"

    PROVIDER_CONNECT_TIMEOUT: float = 10.0
    # Upper bound for a single streamed turn (request + full stream read)
    STREAM_TIMEOUT_SECONDS: float = 300.0

    # ===========================================
    # Pricing
    # ===========================================
    PRICING_CACHE_TTL_SECONDS: int = 24 * 60 * 60
    PRICING_FETCH_TIMEOUT: float = 10.0

    # ===========================================
    # Chat
    # ===========================================
    MAX_REPEAT_COUNT: int = 10

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
