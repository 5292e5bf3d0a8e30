"""
Configuration and settings for the community backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # SQL document store (Postgres or SQLite); takes precedence over Firestore
    database_url: Optional[str] = Field(default=None)

    # Firebase service account (Firestore + Authentication)
    firebase_project_id: Optional[str] = Field(default=None)
    google_service_account_email: Optional[str] = Field(default=None)
    google_private_key: Optional[str] = Field(default=None)

    # Riot Data Dragon
    ddragon_base_url: str = Field(default="https://ddragon.leagueoflegends.com")
    ddragon_locale: str = Field(default="ko_KR")
    champion_cache_ttl_seconds: float = Field(default=3600)

    # Community rules
    scrim_creation_min_games: int = Field(default=15)

    # Comma separated list of allowed browser origins
    cors_origins: str = Field(default="")

    @field_validator("google_private_key")
    @classmethod
    def _unescape_newlines(cls, value: Optional[str]) -> Optional[str]:
        # Keys pasted into env files carry literal "\n" sequences.
        return value.replace("\\n", "\n") if value else value

    @property
    def firebase_configured(self) -> bool:
        return bool(
            self.firebase_project_id
            and self.google_service_account_email
            and self.google_private_key
        )

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
