"""
config.py

- Report card settings read from REPORT_CARD_* environment variables (or .env).
- pydantic v2 / pydantic-settings v2.
- Score defaults and per-view precision are settings; the letter-grade cutoffs
  themselves live in grade_formatter.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReportCardSettings(BaseSettings):
    # =========================
    # Score defaults
    # =========================
    PLACEHOLDER_SCORE: float = Field(90.0, ge=0, le=100)  # blank form inputs
    SUBMISSION_DEFAULT_SCORE: float = Field(0.0, ge=0, le=100)  # omitted scores on save

    # =========================
    # Thresholds
    # =========================
    FAILING_THRESHOLD: float = 60.0
    ATTENTION_THRESHOLD: float = 70.0

    # =========================
    # Display precision per view
    # =========================
    ADMIN_PRECISION: int = Field(2, ge=0, le=4)
    PRINT_PRECISION: int = Field(2, ge=0, le=4)
    DASHBOARD_PRECISION: int = Field(1, ge=0, le=4)

    # =========================
    # School defaults
    # =========================
    DEFAULT_SCHOOL_NAME: str = "Emmanuel Suah Academy"
    DEFAULT_ACADEMIC_YEAR: str = "2023-2024"

    # =========================
    # Rendering / runtime
    # =========================
    TEMPLATES_DIR: Optional[Path] = None
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="REPORT_CARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_level(cls, v):
        return str(v).upper() if v else "INFO"


@lru_cache()
def get_settings() -> ReportCardSettings:
    return ReportCardSettings()
