"""Data contracts exchanged with collaborators."""

from .common import EngineModel, MetricKind, Sport, normalize_sport, to_camel
from .efforts import (
    ActivitySamples,
    Effort,
    PowerDurationRecord,
    ProfilePoint,
    SamplePoint,
)
from .thresholds import (
    CPEffort,
    CPFitOutcome,
    CPRejectionReason,
    CPResult,
    FTPEstimate,
    LabResult,
    ThresholdRecency,
    ThresholdSource,
)
from .training_load import ActivityLoad, TrainingDayRecord

__all__ = [
    "EngineModel",
    "MetricKind",
    "Sport",
    "normalize_sport",
    "to_camel",
    # Efforts and profile
    "ActivitySamples",
    "Effort",
    "PowerDurationRecord",
    "ProfilePoint",
    "SamplePoint",
    # Thresholds
    "CPEffort",
    "CPFitOutcome",
    "CPRejectionReason",
    "CPResult",
    "FTPEstimate",
    "LabResult",
    "ThresholdRecency",
    "ThresholdSource",
    # Training load
    "ActivityLoad",
    "TrainingDayRecord",
]
