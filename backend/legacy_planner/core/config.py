"""
Application configuration settings.
Uses pydantic-settings for environment variable management.
"""

from pathlib import Path
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Legacy Planner"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False  # SQLAlchemy echoes queries when True
    LOG_LEVEL: str = "INFO"

    # Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"

    # Database
    DATABASE_URL: str = f"sqlite:///{DATA_DIR / 'legacy_planner.db'}"

    # Beneficiary roster cache (seconds). Entries are also dropped on every roster write.
    ROSTER_CACHE_TTL_SECONDS: int = 5 * 60

    # Network/CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Allow all origins in development
    CORS_ALLOW_ALL: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields from .env that aren't in the model


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
