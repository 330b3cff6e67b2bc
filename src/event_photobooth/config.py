"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    cron_secret: str | None = None
    photos_bucket: str = "photos"
    zips_bucket: str = "zips"
    gallery_grace_days: int = 15
    zip_cache_ttl_hours: int = 24
    signed_url_ttl_seconds: int = 86400
    analytics_timezone: str = "UTC"
    cleanup_log_retention_days: int | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_bearer_token(raw: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header value."""
    if raw is None:
        return None
    scheme, _, token = raw.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None
