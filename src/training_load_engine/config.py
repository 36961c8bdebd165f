"""Configuration settings for the training load engine."""

from functools import lru_cache
from pathlib import Path
from typing import List, Tuple

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Path calculations:
# __file__ = src/training_load_engine/config.py
# .parent.parent.parent = project root
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Canonical duration buckets (seconds)
DEFAULT_DURATION_BUCKETS: Tuple[int, ...] = (
    5, 15, 30, 60, 120, 180, 300, 480, 600, 720, 1200, 1800, 3600,
)


class EngineSettings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRAINING_ENGINE_",
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Threshold freshness windows (days)
    lab_max_age_days: int = 120
    cp_max_age_days: int = 60

    # Rolling window used for range bests and FTP estimation
    profile_window_days: int = 90

    # Critical power fit validation
    cp_residual_tolerance: float = 0.05  # 5% of predicted power
    cp_min_effort_seconds: int = 60
    cp_min_effort_watts: float = 50.0

    duration_buckets: List[int] = list(DEFAULT_DURATION_BUCKETS)

    # Emit a backfill progress callback every N items
    backfill_progress_every: int = 1

    @field_validator("lab_max_age_days", "cp_max_age_days", "profile_window_days")
    @classmethod
    def _positive_days(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("day windows must be positive")
        return value

    @field_validator("cp_residual_tolerance")
    @classmethod
    def _tolerance_range(cls, value: float) -> float:
        if not 0 < value < 1:
            raise ValueError("cp_residual_tolerance must be between 0 and 1")
        return value

    @field_validator("duration_buckets")
    @classmethod
    def _sorted_buckets(cls, value: List[int]) -> List[int]:
        if not value or any(d <= 0 for d in value) or sorted(set(value)) != value:
            raise ValueError("duration_buckets must be sorted, unique and positive")
        return value


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()
