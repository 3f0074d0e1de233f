"""
Configuration settings for the exam coach.

Uses Pydantic Settings for environment variable management with .env file support.
Variables are prefixed with ``EXAMCOACH_`` (e.g. ``EXAMCOACH_WEAK_SCORE_THRESHOLD``).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EXAMCOACH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///examcoach.db",
        description="SQLAlchemy connection string for history, exposure and skip tables",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Exam Structure
    # ========================================
    exam_total_questions: int = Field(
        default=50,
        ge=1,
        description="Questions per assessment",
    )
    exam_non_visual_questions: int = Field(
        default=30,
        ge=0,
        description="Questions without an image",
    )
    exam_visual_questions: int = Field(
        default=20,
        ge=0,
        description="Questions with an image",
    )
    exam_pass_percentage: int = Field(
        default=88,
        ge=0,
        le=100,
        description="Pass mark (44/50)",
    )

    # ========================================
    # Thresholds
    # ========================================
    weak_score_threshold: float = Field(
        default=60.0,
        ge=0,
        le=100,
        description="Average or mastery below this marks a topic weak",
    )
    min_days_since_seen: float = Field(
        default=7,
        ge=0,
        description="Cooldown before a seen question may reappear",
    )
    max_times_shown: int = Field(
        default=3,
        ge=1,
        description="Questions shown this often are retired",
    )
    skip_limit: int = Field(
        default=3,
        ge=1,
        description="Skips after which a weak topic is no longer recommended",
    )
    focus_topic_count: int = Field(
        default=3,
        ge=0,
        description="Weak topics that bias assembly",
    )
    recent_window_days: int = Field(
        default=7,
        ge=1,
        description="Trailing window for recent performance",
    )
    recent_attempt_fallback: int = Field(
        default=5,
        ge=1,
        description="Attempts used when the window is empty",
    )

    # ========================================
    # Data Files
    # ========================================
    question_bank_path: str | None = Field(
        default=None,
        description="Default JSON question bank for the CLI",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
