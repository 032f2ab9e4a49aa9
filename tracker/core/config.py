import os
import logging
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import ClassVar, List, Optional

# Load environment variables from .env file
load_dotenv(".env", override=False)
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Class to store all the settings of the release tracker application."""

    # ------------------------------
    # Database - Required
    # ------------------------------
    DATABASE_URL: str = Field(description="SQLAlchemy async URL, e.g. postgresql+asyncpg://...")
    DB_ECHO: bool = Field(default=False)
    DB_POOL_SIZE: int = Field(default=15)
    DB_MAX_OVERFLOW: int = Field(default=5)
    STORE_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    # ------------------------------
    # Auth - Required
    # ------------------------------
    SECRET_KEY: str
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)

    # ------------------------------
    # Caching
    # ------------------------------
    SEARCH_CACHE_TTL: float = Field(default=60.0, gt=0)
    PROGRESS_CACHE_TTL: float = Field(default=120.0, gt=0)
    CACHE_MAX_ENTRIES: int = Field(default=1024, gt=0)

    # ------------------------------
    # Search
    # ------------------------------
    DEFAULT_PAGE_SIZE: int = Field(default=20, gt=0)
    MAX_PAGE_SIZE: int = Field(default=100, gt=0)

    # ------------------------------
    # Notifications - Optional
    # ------------------------------
    NOTIFICATION_WEBHOOK_URL: Optional[str] = Field(default=None)
    NOTIFICATION_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    # ------------------------------
    # Rate limiting
    # ------------------------------
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    RATE_LIMIT_DEFAULT: str = Field(default="120/minute")

    # ------------------------------
    # Environment
    # ------------------------------
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    ALLOWED_ORIGINS: List[str] = Field(default=["http://localhost:3000"])

    # ------------------------------
    # Database models
    # ------------------------------
    DB_MODELS: ClassVar[List[str]] = [
        "tracker.models.milestones",
        "tracker.models.releases",
        "tracker.models.issues",
    ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Instantiate the settings
settings = Settings()
