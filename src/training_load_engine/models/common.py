"""Shared model helpers, sport and metric enums."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


class EngineModel(BaseModel):
    """Immutable base for every record the engine hands to collaborators."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Sport(str, Enum):
    """Primary sport groups; every provider activity type maps onto one."""
    RUNNING = "running"
    CYCLING = "cycling"
    SWIMMING = "swimming"


class MetricKind(str, Enum):
    """Which sample metric an effort was computed from."""
    POWER = "power"  # watts, higher is better
    PACE = "pace"    # seconds per km, lower is better

    @property
    def higher_is_better(self) -> bool:
        return self is MetricKind.POWER

    def is_better(self, candidate: float, incumbent: Optional[float]) -> bool:
        """Strict comparison; ties never replace the incumbent."""
        if incumbent is None:
            return True
        if self.higher_is_better:
            return candidate > incumbent
        return candidate < incumbent


_SPORT_ALIASES = {
    # Running group
    "running": Sport.RUNNING,
    "run": Sport.RUNNING,
    "walk": Sport.RUNNING,
    "walking": Sport.RUNNING,
    "hike": Sport.RUNNING,
    "hiking": Sport.RUNNING,
    "trail_run": Sport.RUNNING,
    "trailrun": Sport.RUNNING,
    "trail_running": Sport.RUNNING,
    "virtual_run": Sport.RUNNING,
    "virtualrun": Sport.RUNNING,
    "treadmill": Sport.RUNNING,
    "treadmill_running": Sport.RUNNING,
    # Cycling group
    "cycling": Sport.CYCLING,
    "ride": Sport.CYCLING,
    "virtual_ride": Sport.CYCLING,
    "virtualride": Sport.CYCLING,
    "e_bike_ride": Sport.CYCLING,
    "ebikeride": Sport.CYCLING,
    "mountain_bike_ride": Sport.CYCLING,
    "mountainbikeride": Sport.CYCLING,
    "gravel_ride": Sport.CYCLING,
    "gravelride": Sport.CYCLING,
    "indoor_cycling": Sport.CYCLING,
    "handcycle": Sport.CYCLING,
    # Swimming group
    "swimming": Sport.SWIMMING,
    "swim": Sport.SWIMMING,
    "pool_swim": Sport.SWIMMING,
    "lap_swimming": Sport.SWIMMING,
    "open_water_swim": Sport.SWIMMING,
    "open_water_swimming": Sport.SWIMMING,
}


def normalize_sport(sport: Optional[str]) -> Sport:
    """
    Map any provider activity type onto its primary sport group.

    Unknown or missing types fall back to cycling.

    Args:
        sport: Raw activity type (e.g. 'VirtualRide', 'walk', Sport.RUNNING)

    Returns:
        Primary Sport
    """
    if isinstance(sport, Sport):
        return sport
    if not sport:
        return Sport.CYCLING
    return _SPORT_ALIASES.get(sport.strip().lower(), Sport.CYCLING)
