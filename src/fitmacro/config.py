"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    openai_fast_model: str = "gpt-4o-mini"
    openfoodfacts_base_url: str = "https://world.openfoodfacts.org/api/v2"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def has_openai_key(settings: Settings) -> bool:
    """Return true when a usable OpenAI key is configured."""
    key = settings.openai_api_key
    return key is not None and key.strip() != ""
