"""Services orchestrating the metric functions over caller-supplied data."""

from .base import BaseService
from .pmc_population import PMCPopulationService, PopulationResult
from .profile_backfill import BackfillSummary, backfill_power_profile
from .profile_cache import ProfileCache

__all__ = [
    "BaseService",
    "PMCPopulationService",
    "PopulationResult",
    "BackfillSummary",
    "backfill_power_profile",
    "ProfileCache",
]
