"""Threshold data models: lab results, critical power fits and FTP estimates."""

from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .common import EngineModel, Sport


class LabResult(EngineModel):
    """Externally supplied laboratory thresholds. Read-only input."""

    test_date: date = Field(..., description="Date of the lab test")
    sport: Sport = Field(default=Sport.CYCLING, description="Primary sport")
    aet: Optional[float] = Field(None, description="Aerobic threshold power")
    gt: Optional[float] = Field(None, description="Gas exchange threshold power")
    map_power: Optional[float] = Field(None, alias="map", description="Maximal aerobic power")
    lt2_power: Optional[float] = Field(None, description="Second lactate threshold power")
    vt2_power: Optional[float] = Field(None, description="Second ventilatory threshold power")
    critical_power: Optional[float] = Field(None, description="Lab-derived critical power")

    @property
    def secondary_threshold(self) -> Optional[float]:
        """LT2 when measured, otherwise VT2."""
        if self.lt2_power:
            return self.lt2_power
        if self.vt2_power:
            return self.vt2_power
        return None


class CPRejectionReason(str, Enum):
    """Why an effort, or a whole fit, was rejected."""
    INSUFFICIENT_POINTS = "insufficient_points"
    INSUFFICIENT_POINTS_AFTER_VALIDATION = "insufficient_points_after_validation"
    NON_PHYSIOLOGICAL_FIT = "non_physiological_fit"
    RESIDUAL_EXCEEDS_TOLERANCE = "residual_exceeds_tolerance"
    DUPLICATE_DURATION = "duplicate_duration"
    POWER_TOO_LOW = "power_too_low"
    DURATION_TOO_SHORT = "duration_too_short"
    INVALID_VALUE = "invalid_value"


class CPEffort(EngineModel):
    """One maximal effort offered to the critical power fit."""

    duration_seconds: int = Field(..., description="Effort duration in seconds")
    power: float = Field(..., description="Mean power over the effort (W)")
    achieved_on: Optional[date] = Field(None, description="Date of the effort")
    activity_id: Optional[str] = Field(None, description="Source activity")
    rejection_reason: Optional[CPRejectionReason] = Field(None, description="Set when rejected")
    residual_pct: Optional[float] = Field(None, description="Residual vs. fitted model, as a fraction")

    def rejected(self, reason: CPRejectionReason, residual_pct: Optional[float] = None) -> "CPEffort":
        return self.model_copy(update={"rejection_reason": reason, "residual_pct": residual_pct})


class CPResult(EngineModel):
    """
    A critical power model fit. Append-only: a new fit is a new result.

    ``efforts_used`` and ``efforts_rejected`` together always contain every
    effort that was offered to the fit.
    """

    cp_watts: float = Field(..., description="Critical power (W)")
    w_prime_joules: float = Field(..., description="Work capacity above CP (J)")
    test_date: date = Field(..., description="Date the fit applies to")
    protocol_used: str = Field(default="field", description="Protocol name")
    sport: Sport = Field(default=Sport.CYCLING)
    efforts_used: List[CPEffort] = Field(default_factory=list)
    efforts_rejected: List[CPEffort] = Field(default_factory=list)
    r_squared: Optional[float] = Field(None, description="Goodness of fit on the used efforts")


class CPFitOutcome(EngineModel):
    """Result of a fit attempt; ``result`` is None when the fit was refused."""

    result: Optional[CPResult] = None
    efforts_rejected: List[CPEffort] = Field(default_factory=list)
    reason: Optional[CPRejectionReason] = None

    @property
    def accepted(self) -> bool:
        return self.result is not None


class ThresholdSource(str, Enum):
    """Which source the resolved FTP came from."""
    LAB_LT2_FRESH = "lab_lt2_fresh"
    LAB_VT2_FRESH = "lab_vt2_fresh"
    CP_FRESH = "cp_fresh"
    MMP_90D_1H = "mmp_90d_1h"
    MMP_90D_20MIN = "mmp_90d_20min"
    MMP_90D_5MIN = "mmp_90d_5min"
    LAB_MAP_FRESH = "lab_map_fresh"
    LAB_MAP_STALE = "lab_map_stale"
    LAB_LT2_STALE = "lab_lt2_stale"
    LAB_VT2_STALE = "lab_vt2_stale"
    CP_STALE = "cp_stale"
    NONE = "none"


class ThresholdRecency(EngineModel):
    """Ages of the lab and CP tests considered during resolution."""

    lab_age_days: Optional[int] = None
    cp_age_days: Optional[int] = None
    lab_fresh: bool = False
    cp_fresh: bool = False


class FTPEstimate(EngineModel):
    """Resolved functional threshold power. ``value`` is None when no source exists."""

    value: Optional[float] = None
    source: ThresholdSource = ThresholdSource.NONE
    recency: ThresholdRecency = Field(default_factory=ThresholdRecency)
