"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables, ``.env`` or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    LLM_CONFIG_PATH: str = Field(default="app_config.json")

    TIME_LIMIT_EASY: int = Field(default=120, gt=0)
    TIME_LIMIT_MEDIUM: int = Field(default=180, gt=0)
    TIME_LIMIT_HARD: int = Field(default=240, gt=0)

    # Structural heuristic used when the scoring backend is unavailable
    FALLBACK_BASE_SCORE: int = Field(default=60, ge=0, le=100)
    FALLBACK_SCORE_CAP: int = Field(default=95, ge=0, le=100)

    LOG_LEVEL: str = "INFO"
    ENABLE_FILE_LOGS: bool = True
    LOG_FILE: str = "logs/interview.log"
    LOG_MAX_BYTES: int = 5 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", validate_assignment=True)


settings = Settings()
