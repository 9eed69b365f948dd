"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 5000

    # Storage
    # "memory" keeps everything in-process (development/tests), "firestore" for production
    storage_backend: Literal["memory", "firestore"] = "memory"
    firestore_emulator_host: str | None = None
    gcp_project_id: str = ""

    # Tokens
    jwt_secret: str = Field(default="development-secret-key-change-in-production")
    jwt_algorithm: str = "HS256"
    jwt_expiration_days: int = 7
    password_reset_ttl_minutes: int = 60

    # Links sent by e-mail point at the frontend
    frontend_url: str = "http://localhost:5001"

    # Mail relay
    smtp_host: str = ""
    smtp_port: int = 465
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_ssl: bool = True
    mail_from: str = ""

    # LLM Providers (conversation summaries)
    openai_api_key: str = ""
    litellm_primary_model: str = "gpt-4o-mini"
    litellm_fallback_model: str = "gpt-3.5-turbo"
    auto_summarize_conversations: bool = False

    # AWS Comprehend (optional sentiment backend)
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"

    # Shared key for the call-engine facing endpoints; empty disables the check
    ingest_api_key: str = ""

    # CORS
    cors_allowed_origins: str = ""

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if not self.cors_allowed_origins:
            return ["*"] if self.is_development else []
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    @property
    def mail_configured(self) -> bool:
        return bool(self.smtp_host and self.mail_from)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
