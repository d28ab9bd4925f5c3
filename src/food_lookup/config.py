"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    openfoodfacts_base_url: str = "https://world.openfoodfacts.org/api/v2"
    openfoodfacts_user_agent: str = "FoodLookup/1.0 (barcode lookup service)"
    openfoodfacts_timeout_seconds: float = 15.0
    external_source: str = "openfoodfacts"
    cache_stale_days: int = 30
    coalesce_inflight_lookups: bool = False
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
