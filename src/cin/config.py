"""Configuration management for cin."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CinSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    working_path: Path = Field(default=Path("."), validation_alias="CIN_WORKING_PATH")
    log_level: str = Field(default="INFO", validation_alias="CIN_LOG_LEVEL")
    git_path: str = Field(default="git", validation_alias="CIN_GIT_PATH")
    shell: str = Field(default="bash", validation_alias="CIN_SHELL")
    default_branch: str = Field(default="master", validation_alias="CIN_DEFAULT_BRANCH")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError("CIN_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG")
        return normalized

    @field_validator("default_branch", "git_path", "shell")
    @classmethod
    def _require_value(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("value must not be empty")
        return normalized


@lru_cache(maxsize=1)
def get_settings() -> CinSettings:
    """Return cached settings instance."""

    settings = CinSettings()
    settings.working_path = settings.working_path.expanduser().resolve()
    return settings


__all__ = ["CinSettings", "get_settings"]
