"""
Custom exceptions for the training load engine.

Only programmer errors are raised. Sparse or missing data is an expected
steady state and is reported through explicit result fields instead
(empty effort lists, CP rejection reasons, ``source="none"`` thresholds).
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Sequence


class ErrorCode(str, Enum):
    """Error codes for consistent error reporting."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Duration buckets
    INVALID_DURATION_BUCKETS = "INVALID_DURATION_BUCKETS"
    DURATION_BUCKET_MISMATCH = "DURATION_BUCKET_MISMATCH"
    UNKNOWN_TIME_WINDOW = "UNKNOWN_TIME_WINDOW"

    # Training load series
    NON_CONTIGUOUS_DAY = "NON_CONTIGUOUS_DAY"
    POPULATION_IN_PROGRESS = "POPULATION_IN_PROGRESS"


class TrainingEngineError(Exception):
    """
    Base exception for all engine errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging or API responses."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Duration bucket errors
# ============================================================================

class InvalidDurationBucketsError(TrainingEngineError):
    """Raised when a bucket set is empty, unsorted, duplicated or non-positive."""

    def __init__(self, buckets: Sequence[int]) -> None:
        super().__init__(
            message="Duration buckets must be a non-empty, sorted set of unique positive seconds",
            code=ErrorCode.INVALID_DURATION_BUCKETS,
            details={"buckets": list(buckets)},
        )


class DurationBucketMismatchError(TrainingEngineError):
    """Raised when efforts or profiles with different bucket sets are combined."""

    def __init__(
        self,
        expected: Sequence[int],
        received: Sequence[int],
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["expected"] = list(expected)
        error_details["received"] = list(received)
        super().__init__(
            message="Duration bucket sets do not match",
            code=ErrorCode.DURATION_BUCKET_MISMATCH,
            details=error_details,
        )


class UnknownTimeWindowError(TrainingEngineError):
    """Raised when a profile is queried for a window it does not track."""

    def __init__(self, window_days: int, tracked: Sequence[Optional[int]]) -> None:
        super().__init__(
            message=f"Profile does not track a {window_days}-day window",
            code=ErrorCode.UNKNOWN_TIME_WINDOW,
            details={"window_days": window_days, "tracked": list(tracked)},
        )


# ============================================================================
# Training load errors
# ============================================================================

class NonContiguousDayError(TrainingEngineError):
    """Raised when an incremental day is not the day after the previous record."""

    def __init__(self, previous: date, received: date) -> None:
        super().__init__(
            message=(
                f"Cannot append {received.isoformat()} after {previous.isoformat()}; "
                "recompute the series to fill missing days"
            ),
            code=ErrorCode.NON_CONTIGUOUS_DAY,
            details={"previous": previous.isoformat(), "received": received.isoformat()},
        )


class PopulationInProgressError(TrainingEngineError):
    """Raised when a PMC population is already running for the same athlete and sport."""

    def __init__(self, athlete_id: str, sport: str) -> None:
        super().__init__(
            message=f"PMC population already in progress for athlete '{athlete_id}' ({sport})",
            code=ErrorCode.POPULATION_IN_PROGRESS,
            details={"athlete_id": athlete_id, "sport": sport},
        )
