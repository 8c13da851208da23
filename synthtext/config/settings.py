"""Runtime settings loaded from the environment and an optional ``.env`` file."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from synthtext.schemas.engine import EngineDefinition, EnginePreset

DEFAULT_API_BASE = "https://api.textsynth.com"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Client configuration.

    Every field can be set through a ``SYNTHTEXT_``-prefixed environment
    variable. ``SYNTHTEXT_ENGINE_DEFINITION`` takes JSON, e.g. ``"boris_6B"``
    or ``{"engine_id": "mistral_7B", "max_tokens": 4096}``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SYNTHTEXT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: Optional[str] = Field(default=None, description="Bearer token for the API")
    api_base: str = Field(default=DEFAULT_API_BASE, description="Base URL of the API")
    engine_definition: EngineDefinition = Field(
        default=EnginePreset.GPTJ_6B,
        description="Engine that requests are sent to",
    )
    timeout_seconds: float = Field(default=120.0, gt=0, description="Transport timeout per request")
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(VALID_LOG_LEVELS)}")
        return level

    @field_validator("api_base")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    return Settings()
