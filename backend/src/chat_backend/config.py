"""AI Chat Backend: Application Configuration."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chat_backend.shared.providers.invoker import DEFAULT_PROMPT_TEMPLATE
from chat_backend.shared.providers.types import DEFAULT_DAILY_LIMIT


class Environment(str, enum.Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Centralised, validated configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────
    app_name: str = "ai-chat-backend"
    app_env: Environment = Environment.DEVELOPMENT
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 5000
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    # ── Operator access ──────────────────────────────────────
    api_key_header: str = "X-API-Key"
    admin_api_key: str = ""

    # ── Gemini ───────────────────────────────────────────────
    gemini_api_key: str = ""
    gemini_api_key_2: str = ""
    gemini_api_key_3: str = ""
    # Extra keys (comma-separated) for the rotation pool
    gemini_api_keys: str = ""
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # ── Generation ───────────────────────────────────────────
    provider_daily_limit: int = DEFAULT_DAILY_LIMIT
    provider_timeout_seconds: float = 60.0
    generation_temperature: float = 0.7
    generation_top_k: int = 40
    generation_top_p: float = 0.95
    generation_max_output_tokens: int = 2048
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE

    # ── Derived helpers ──────────────────────────────────────
    @property
    def is_production(self) -> bool:
        return self.app_env == Environment.PRODUCTION

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("provider_daily_limit")
    @classmethod
    def _positive_daily_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("provider_daily_limit must be positive")
        return v

    @field_validator("prompt_template")
    @classmethod
    def _template_has_placeholder(cls, v: str) -> str:
        if "{text}" not in v:
            raise ValueError("prompt_template must contain the {text} placeholder")
        return v


def get_settings(**overrides: Any) -> Settings:
    """Factory that allows test-time overrides."""
    return Settings(**overrides)
