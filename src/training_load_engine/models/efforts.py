"""Effort and power-duration profile data models."""

from datetime import date
from typing import List, Optional, Tuple

from pydantic import Field, field_validator

from .common import EngineModel, MetricKind, Sport, normalize_sport

# (elapsed_second, value) pairs, one metric, one activity
SamplePoint = Tuple[int, Optional[float]]


class Effort(EngineModel):
    """Best sustained value for one duration within one activity."""

    duration_seconds: int = Field(..., gt=0, description="Window length in seconds")
    value: float = Field(..., description="Watts for power, seconds per km for pace")
    achieved_on: date = Field(..., description="Date of the activity")
    activity_id: Optional[str] = Field(None, description="Source activity, if known")


class ActivitySamples(EngineModel):
    """Per-activity sample series handed over by the ingestion collaborator."""

    activity_id: str = Field(..., description="Activity identifier")
    name: Optional[str] = Field(None, description="Activity name, used for progress labels")
    activity_date: date = Field(..., alias="date", description="Calendar date of the activity")
    sport: Sport = Field(default=Sport.CYCLING, description="Normalized sport")
    power: List[SamplePoint] = Field(default_factory=list, description="Power samples (W)")
    speed: List[SamplePoint] = Field(default_factory=list, description="Speed samples (m/s)")
    pace: List[SamplePoint] = Field(default_factory=list, description="Pace samples (s/km)")

    @field_validator("sport", mode="before")
    @classmethod
    def _normalize_sport(cls, value):
        return normalize_sport(value)

    @property
    def has_samples(self) -> bool:
        return bool(self.power or self.speed or self.pace)


class PowerDurationRecord(EngineModel):
    """
    Tracked values for one (athlete, sport, duration bucket, time window).

    The three values answer different questions and are kept side by side:
    - most_recent: latest effort seen (current fitness)
    - all_time_best: best effort ever seen
    - range_best: best effort inside the time window

    ``time_window_days`` of None is the all-time record, whose range best
    mirrors the all-time best.
    """

    athlete_id: str = Field(..., description="Athlete identifier")
    sport: Sport = Field(..., description="Primary sport")
    metric: MetricKind = Field(default=MetricKind.POWER, description="Power or pace")
    duration_seconds: int = Field(..., gt=0, description="Duration bucket")
    time_window_days: Optional[int] = Field(None, description="Window length, None for all-time")
    all_time_best: Optional[float] = Field(None, description="Best value ever")
    achieved_date: Optional[date] = Field(None, description="Date of the all-time best")
    range_best: Optional[float] = Field(None, description="Best value inside the window")
    range_best_date: Optional[date] = Field(None, description="Date of the range best")
    most_recent: Optional[float] = Field(None, description="Most recent value")
    most_recent_date: Optional[date] = Field(None, description="Date of the most recent value")


class ProfilePoint(EngineModel):
    """
    Query result for one duration bucket.

    Zero means "no data", never a real effort.
    """

    duration_seconds: int = Field(..., gt=0)
    current: float = Field(default=0.0, description="Most recent value")
    best: float = Field(default=0.0, description="Range best if a window was queried, else all-time")
    all_time_best: float = Field(default=0.0, description="Best value ever")

    @property
    def has_data(self) -> bool:
        return self.all_time_best > 0
