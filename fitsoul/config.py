"""Configuration settings for Fitsoul."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB settings
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "fitsoul"

    # Firebase / Identity Toolkit settings
    firebase_api_key: str = ""
    identity_toolkit_url: str = "https://identitytoolkit.googleapis.com/v1"
    identity_timeout_seconds: float = 10.0

    # Google Sign-In
    google_web_client_id: str = ""

    # Application settings
    app_name: str = "Fitsoul"
    debug: bool = False

    # Event stream settings
    sse_keepalive_seconds: int = 30

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
