from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_BUFFER, DEFAULT_LANGUAGE


class Settings(BaseSettings):
    """Runtime configuration, read from ``CODEROOM_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="CODEROOM_", env_file=".env", extra="ignore")

    app_name: str = "Coderoom"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Document state given to a freshly created room
    default_language: str = DEFAULT_LANGUAGE
    default_buffer: str = DEFAULT_BUFFER

    # --- Code execution passthrough --- #
    execution_enabled: bool = True
    execution_url: str = "https://emkc.org/api/v2/piston/execute"
    execution_timeout: float = 10.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
