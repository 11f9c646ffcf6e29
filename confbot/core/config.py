from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import FrozenSet


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (default uses docker-compose service name)
    database_url: str = "postgresql+psycopg2://confbot:confbot_dev@db:5432/confbot"

    # Redis backs the dialog session store
    redis_url: str = "redis://redis:6379/0"

    # App settings
    app_name: str = "ConfBot"
    debug: bool = False
    log_level: str = "INFO"

    # Comma-separated external identities with main-admin rights
    main_admin_ids: str = ""

    # Dialog sessions expire after this much inactivity
    session_ttl_seconds: int = 1800

    # Conference codes
    code_length: int = 6
    code_max_attempts: int = 10

    # Second screen
    viewer_secret: str = ""
    viewer_base_url: str = ""

    search_limit: int = 20

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def main_admin_identities(self) -> FrozenSet[str]:
        return frozenset(part.strip() for part in self.main_admin_ids.split(",") if part.strip())


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
