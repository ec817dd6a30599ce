"""
Guardian AI Configuration Management

Centralized configuration using Pydantic Settings for type-safe environment
variable loading with validation.

SECURITY NOTE: GROQ_API_KEY and SENTRY_DSN should come from the process
environment or an untracked .env file, never from source control.
"""

import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")

DEFAULT_GUARDIAN_FEED = "0xea1Ad2Ebf76b490a327eF1885863c9209994F015"
DEFAULT_GUARDIAN_DAO = "0xd4DcBae99C65079ba6CA2e99c8D5Dcc37d60456b"
DEFAULT_GUARDIAN_BADGE = "0x525975C25823ecb3a3875F577a5B9574aB758197"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ═══════════════════════════════════════════════════════════════
    # APPLICATION
    # ═══════════════════════════════════════════════════════════════
    app_name: str = Field(default="guardian-ai", description="Application name")
    app_env: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=5000, ge=1, le=65535, description="API port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5000,http://localhost:5173",
        description="Comma-separated CORS origins",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into list."""
        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
        if self.app_env == "production" and "*" in origins:
            raise ValueError("Wildcard CORS origin not allowed in production")
        return origins

    # ═══════════════════════════════════════════════════════════════
    # BLOCKCHAIN
    # ═══════════════════════════════════════════════════════════════
    demo_mode: bool = Field(
        default=True,
        description="Replace all chain access with generated demo data",
    )
    rpc_url: str = Field(
        default="https://rpc.scs.soneium.io",
        description="JSON-RPC endpoint used when demo mode is off",
    )
    guardian_feed: str = Field(default=DEFAULT_GUARDIAN_FEED, description="Guardian Feed address")
    guardian_dao: str = Field(default=DEFAULT_GUARDIAN_DAO, description="Guardian DAO address")
    guardian_badge: str = Field(default=DEFAULT_GUARDIAN_BADGE, description="Guardian Badge address")

    @field_validator("guardian_feed", "guardian_dao", "guardian_badge")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Contract addresses must be 0x-prefixed 20-byte hex strings."""
        if not ADDRESS_PATTERN.match(v):
            raise ValueError(f"Invalid contract address: {v}")
        return v

    # ═══════════════════════════════════════════════════════════════
    # LLM CONFIGURATION
    # ═══════════════════════════════════════════════════════════════
    llm_provider: Literal["groq", "openai", "mock"] = Field(
        default="groq", description="LLM provider"
    )
    groq_api_key: str | None = Field(default=None, description="Groq API key")
    ai_model: str = Field(default="llama3-8b-8192", description="Chat completion model")
    llm_api_base: str | None = Field(
        default=None, description="Override the provider's API base URL"
    )
    llm_temperature: float = Field(default=0.5, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=1024, ge=1)
    llm_timeout_seconds: float = Field(default=60.0, gt=0)
    llm_max_retries: int = Field(default=1, ge=1, le=5)
    daily_token_limit: int = Field(
        default=100_000, ge=0, description="Total tokens the AI service may spend"
    )

    # ═══════════════════════════════════════════════════════════════
    # MONITOR
    # ═══════════════════════════════════════════════════════════════
    monitor_autostart: bool = Field(
        default=True, description="Start the monitor loops at application startup"
    )
    security_check_interval_minutes: float = Field(default=30.0, gt=0)
    ai_analysis_interval_minutes: float = Field(default=120.0, gt=0)
    event_poll_interval_seconds: float = Field(
        default=15.0, gt=0, description="Log polling interval in live mode"
    )

    # ═══════════════════════════════════════════════════════════════
    # OBSERVABILITY
    # ═══════════════════════════════════════════════════════════════
    sentry_dsn: str | None = Field(default=None, description="Sentry DSN for error tracking")

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
