"""Application settings using Pydantic Settings for configuration management."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    app_name: str = "InboxTrack"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 5000

    # Token vault (AES-256, exactly 32 bytes)
    encryption_key: SecretStr = Field(default=SecretStr(""))

    # Google / Gmail
    google_client_id: str = ""
    google_client_secret: SecretStr = Field(default=SecretStr(""))
    google_topic: str = ""
    gmail_timeout_seconds: float = 20.0

    # Pub/Sub push verification (optional ?token= on the push endpoint URL)
    webhook_token: SecretStr | None = None

    # LLM Configuration
    llm_provider: Literal["groq", "openai", "anthropic", "local"] = "openai"
    llm_model_name: str | None = None
    groq_api_key: SecretStr | None = None
    openai_api_key: SecretStr | None = None
    anthropic_api_key: SecretStr | None = None
    llm_timeout_seconds: float = 30.0

    # Local vLLM (for local inference)
    vllm_base_url: str = "http://localhost:8000/v1"
    vllm_model_name: str = "gpt-oss-20b"

    # Pipeline tuning
    extraction_max_chars: int = 5000
    match_threshold: float = Field(default=0.4, ge=0.0, le=1.0)

    # Storage
    sqlite_db_path: str = "/app/data/inboxtrack.db"

    # Real-time fan-out
    subscriber_queue_size: int = 100


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
