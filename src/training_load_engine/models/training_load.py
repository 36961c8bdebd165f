"""Training load (PMC) data models."""

from datetime import date
from typing import Optional

from pydantic import Field, field_validator

from .common import EngineModel, Sport, normalize_sport


class ActivityLoad(EngineModel):
    """Per-activity load as produced by the TSS step."""

    activity_id: Optional[str] = Field(None, description="Source activity")
    activity_date: date = Field(..., alias="date", description="Calendar date of the activity")
    sport: Sport = Field(default=Sport.CYCLING, description="Primary sport")
    tss: Optional[float] = Field(None, description="Training stress score, None if unknown")
    duration_seconds: int = Field(default=0, ge=0)

    @field_validator("sport", mode="before")
    @classmethod
    def _normalize_sport(cls, value):
        return normalize_sport(value)


class TrainingDayRecord(EngineModel):
    """
    One calendar day of the Performance Management Chart.

    Days without activity carry tss=0 so the averages stay continuous.
    """

    athlete_id: Optional[str] = Field(None, description="Athlete identifier")
    sport: Sport = Field(default=Sport.CYCLING)
    day: date = Field(..., alias="date", description="Calendar day")
    tss: float = Field(default=0.0, description="Summed TSS for the day")
    ctl: float = Field(..., description="Chronic Training Load (fitness), 42-day")
    atl: float = Field(..., description="Acute Training Load (fatigue), 7-day")
    tsb: float = Field(..., description="Training Stress Balance (form) = CTL - ATL")
    duration_minutes: int = Field(default=0, ge=0)
