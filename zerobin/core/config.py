"""
Core configuration module for ZeroBin.
Uses pydantic-settings for environment variable management with full validation.
"""
from __future__ import annotations

import json
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # ── Application ──────────────────────────────────────────────────────────
    APP_NAME: str = "ZeroBin"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"

    # ── External ZeroBin API ──────────────────────────────────────────────────
    API_BASE_URL: str = Field(
        default="http://localhost:8000",
        validation_alias=AliasChoices("API_BASE_URL", "NEXT_PUBLIC_API_BASE_URL"),
    )
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    SEND_TUNNEL_HEADER: bool = True
    DEFAULT_PAGE_LIMIT: int = 100

    # ── Image host ────────────────────────────────────────────────────────────
    IMAGE_HOST_URL: str = "http://localhost:9199/v0/b/zerobin/o"
    IMAGE_HOST_TOKEN: str | None = None
    IMAGE_UPLOAD_PREFIX: str = "waste-reports"
    UPLOAD_CHUNK_SIZE: int = 64 * 1024

    # ── Sentiment ─────────────────────────────────────────────────────────────
    HUGGINGFACE_API_KEY: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "HUGGINGFACE_API_KEY",
            "NEXT_PUBLIC_HUGGINGFACE_API_KEY",
            "NEXT_PUBLIC_HUGGING_API_KEY",
            "NEXT_PUBLIC_HUGGINGFACE_TOKEN",
        ),
    )
    HF_INFERENCE_URL: str = "https://router.huggingface.co/inference"
    HF_SENTIMENT_MODEL: str = "cardiffnlp/twitter-roberta-base-sentiment"
    BANGLA_SENTIMENT_URL: str = "https://eyasir2047-bangla-waste-sentiment-api.hf.space/predict"

    # ── Notifications ─────────────────────────────────────────────────────────
    NOTIFICATION_PAGE_SIZE: int = 20
    NOTIFICATION_POLL_SECONDS: float = 30.0

    # ── Chat ──────────────────────────────────────────────────────────────────
    CHAT_POLL_SECONDS: float = 5.0

    # ── CORS ──────────────────────────────────────────────────────────────────
    ALLOWED_ORIGINS: list[str] = ["*"]

    # ── Rate Limiting ─────────────────────────────────────────────────────────
    RATE_LIMIT_SENTIMENT: str = "20/minute"

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v: Any) -> list[str]:
        """Accept JSON array string or Python list."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except (json.JSONDecodeError, ValueError):
                pass
            # Comma-separated fallback
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("API_BASE_URL", "IMAGE_HOST_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


settings = Settings()
