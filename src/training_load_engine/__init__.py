"""Endurance training analytics: power-duration profiles, CP, FTP and PMC."""

from .config import EngineSettings, get_settings
from .exceptions import ErrorCode, TrainingEngineError
from .metrics import (
    PowerDurationProfile,
    ThresholdResolver,
    append_day,
    build_pmc,
    extract_efforts,
    fit_critical_power,
    recompute_series,
    resolve_threshold,
)
from .services import PMCPopulationService, ProfileCache, backfill_power_profile

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Configuration
    "EngineSettings",
    "get_settings",
    # Errors
    "ErrorCode",
    "TrainingEngineError",
    # Metrics - Efforts and profile
    "extract_efforts",
    "PowerDurationProfile",
    # Metrics - Thresholds
    "fit_critical_power",
    "ThresholdResolver",
    "resolve_threshold",
    # Metrics - Fitness
    "recompute_series",
    "append_day",
    "build_pmc",
    # Services
    "PMCPopulationService",
    "ProfileCache",
    "backfill_power_profile",
]
