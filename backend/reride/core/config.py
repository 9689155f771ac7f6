"""
Application configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated config with sensible defaults
HOW: Pydantic BaseSettings reads from .env and environment
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Literal
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App metadata
    APP_NAME: str = "ReRide Conversations"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Persistence
    PERSISTENCE_BACKEND: Literal["sqlite", "json", "memory"] = "sqlite"
    DATABASE_URL: str = "sqlite:///./data/reride.db"
    CONVERSATIONS_FILE: str = "./data/reRideConversations.json"
    NOTIFICATIONS_FILE: str = "./data/reRideNotifications.json"

    # Chat behaviour
    NOTIFICATION_PREVIEW_LENGTH: int = 50  # characters before "..."
    TYPING_INDICATOR_TIMEOUT_SECONDS: float = 2.0
    PRICE_CURRENCY_SYMBOL: str = "₹"

    # CORS - accepts comma-separated string or list
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, list):
            return ",".join(v)
        return v

    @field_validator("NOTIFICATION_PREVIEW_LENGTH")
    @classmethod
    def validate_preview_length(cls, v: int) -> int:
        """Preview must keep at least one character."""
        if v < 1:
            raise ValueError("NOTIFICATION_PREVIEW_LENGTH must be >= 1")
        return v

    def get_cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./data/logs/app.log"
    # Level for the reride.chat loggers (offer and message traces at DEBUG)
    CHAT_LOG_LEVEL: str = "INFO"

    class Config:
        # Look for .env in project root first, then backend/.env
        env_file = [
            str(Path(__file__).parent.parent.parent.parent / ".env"),
            str(Path(__file__).parent.parent.parent / ".env"),
        ]
        env_file_encoding = "utf-8"
        case_sensitive = True


# Singleton instance
settings = Settings()
