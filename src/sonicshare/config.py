"""Configuration settings for SonicShare."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Which backend adapters `build_stores` wires up.
    storage_backend: Literal["memory", "cloud"] = Field(
        default="cloud",
        alias="STORAGE_BACKEND",
    )

    # Cloudflare R2 blob storage (one bucket per namespace)
    r2_access_key_id: str | None = Field(default=None, alias="R2_ACCESS_KEY_ID")
    r2_secret_access_key: str | None = Field(default=None, alias="R2_SECRET_ACCESS_KEY")
    r2_endpoint_url: str | None = Field(default=None, alias="R2_ENDPOINT_URL")
    r2_audio_bucket: str = Field(default="songs", alias="R2_AUDIO_BUCKET")
    r2_cover_bucket: str = Field(default="covers", alias="R2_COVER_BUCKET")
    r2_audio_public_url: str | None = Field(default=None, alias="R2_AUDIO_PUBLIC_URL")
    r2_cover_public_url: str | None = Field(default=None, alias="R2_COVER_PUBLIC_URL")

    # Supabase (PostgREST) catalog table
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_key: str | None = Field(default=None, alias="SUPABASE_KEY")
    supabase_songs_table: str = Field(default="songs", alias="SUPABASE_SONGS_TABLE")

    # Used when a track is committed without its own cover art.
    placeholder_cover_url: str = Field(
        default="https://picsum.photos/seed/{seed}/400/400",
        alias="PLACEHOLDER_COVER_URL",
    )

    lyrics_api_url: str = Field(
        default="https://api.lyrics.ovh/v1",
        alias="LYRICS_API_URL",
    )
    http_timeout_seconds: float = Field(default=30.0, alias="HTTP_TIMEOUT_SECONDS")

    # Album defaults
    default_album: str = Field(default="Single", alias="DEFAULT_ALBUM")
    fallback_album: str = Field(default="Unknown Album", alias="FALLBACK_ALBUM")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }


@lru_cache
def get_settings() -> Settings:
    """Get settings instance (lazy-loaded, cached)."""
    return Settings()
