"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    images_table: str = "images"
    upload_intents_table: str = "upload_intents"
    upload_dir: str = "uploads"
    cors_origins: str = "*"
    broadcast_mutations: bool = False
    reconcile_grace_seconds: int = 300
    viewer_send_timeout_seconds: float = 5.0
    log_level: str = "INFO"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 5000
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_cors_origins(raw: str | None) -> list[str]:
    """Parse allowed CORS origins from env, defaulting to any origin."""
    if raw is None:
        return ["*"]
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return ["*"]
    origins = [chunk.strip().rstrip("/") for chunk in cleaned.split(",")]
    return [origin for origin in origins if origin] or ["*"]
