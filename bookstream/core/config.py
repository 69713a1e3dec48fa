# bookstream/core/config.py
# Application settings loaded from environment variables / .env file
# Storage backend settings live separately in storage_config.py -- they are
# built once at startup and handed to the services that need them.

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Single source of truth for BookStream application configuration.
    pydantic-settings automatically reads from environment variables.
    Variable names are case-insensitive.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_env: str = "development"
    app_name: str = "BookStream"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    auto_migrate_on_startup: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    frontend_url: str = "http://localhost:5173"

    # Database
    database_url: str

    # JWT
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 7 * 24 * 60

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: str = ""
    google_callback_url: str = "http://localhost:5000/api/auth/callback/google"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def cors_origins(self) -> List[str]:
        """Parse comma-separated FRONTEND_URL into a list."""
        return [o.strip() for o in self.frontend_url.split(",") if o.strip()]

    @property
    def oauth_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)


@lru_cache
def get_settings() -> Settings:
    """
    Returns a cached Settings instance.
    Use as a FastAPI dependency: settings = Depends(get_settings)
    Or import directly:         from bookstream.core.config import settings
    """
    return Settings()


# Module-level singleton -- import this directly in most places
settings = get_settings()
