"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from property_stage.domain.accounts import DEFAULT_PLAN_CREDITS, UNLIMITED_CREDITS, PlanTier

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    gemini_api_key: str | None = None
    gemini_model: str = "gemini-3-pro-image-preview"
    generation_timeout_seconds: float = 150.0
    storage_backend: str = "local"
    local_storage_dir: str = ".property_stage"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    admin_email: str = "admin@propertystage.hk"
    admin_password: str = "admin"
    default_credits: int = 3
    plan_credits: str | None = None
    history_limit: int = 50
    resend_cooldown_seconds: int = 30
    caption_interval_seconds: float = 1.5
    password_hash_rounds: int = 12
    resend_api_key: str | None = None
    email_from: str = "Property Stage <onboarding@resend.dev>"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_plan_credits(raw: str | None) -> dict[PlanTier, int]:
    """Parse ``PLAN=credits`` overrides on top of the default grants."""
    grants = dict(DEFAULT_PLAN_CREDITS)
    if raw is None:
        return grants
    for chunk in raw.split(","):
        name, _, value = chunk.partition("=")
        name = name.strip().upper()
        value = value.strip()
        if not name or not value:
            continue
        try:
            plan = PlanTier(name)
            credits = int(value)
        except ValueError:
            continue
        if credits >= UNLIMITED_CREDITS:
            grants[plan] = credits
    return grants
