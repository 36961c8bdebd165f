"""Power-duration (and pace-duration) profile aggregation across activities.

For every duration bucket the profile tracks, on one record:
- the most recent value (current fitness)
- the all-time best value
- the best value inside each configured trailing window (e.g. 90 days)

Ties never overwrite: when two efforts are exactly equal, the one achieved
earlier is kept, regardless of the order in which they were ingested.
"""

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import get_settings
from ..exceptions import DurationBucketMismatchError, UnknownTimeWindowError
from ..models import Effort, MetricKind, PowerDurationRecord, ProfilePoint, Sport
from .buckets import validate_buckets

logger = logging.getLogger(__name__)

RecordKey = Tuple[int, Optional[int]]


class PowerDurationProfile:
    """Duration-bucketed best/current values for one athlete and sport."""

    def __init__(
        self,
        athlete_id: str,
        sport: Sport = Sport.CYCLING,
        metric: MetricKind = MetricKind.POWER,
        buckets: Optional[Sequence[int]] = None,
        window_days: Iterable[int] = (),
        reference_date: Optional[date] = None,
    ) -> None:
        """
        Args:
            athlete_id: Athlete identifier
            sport: Primary sport
            metric: POWER (higher is better) or PACE (lower is better)
            buckets: Duration buckets in seconds; defaults to the configured set
            window_days: Trailing windows to track range bests for
            reference_date: Date the trailing windows end on (inclusive);
                defaults to today
        """
        if buckets is None:
            buckets = get_settings().duration_buckets
        self.athlete_id = athlete_id
        self.sport = sport
        self.metric = metric
        self._buckets = validate_buckets(buckets)
        self._bucket_set = frozenset(self._buckets)
        self._windows: Tuple[Optional[int], ...] = (None,) + tuple(
            sorted({int(w) for w in window_days if w and w > 0})
        )
        self.reference_date = reference_date or date.today()
        self._records: Dict[RecordKey, PowerDurationRecord] = {}

    @classmethod
    def from_efforts(cls, athlete_id: str, efforts: Iterable[Effort], **kwargs) -> "PowerDurationProfile":
        """Build a profile and ingest every effort."""
        profile = cls(athlete_id, **kwargs)
        profile.ingest_many(efforts)
        return profile

    @property
    def buckets(self) -> Tuple[int, ...]:
        return self._buckets

    @property
    def window_days(self) -> Tuple[int, ...]:
        return tuple(w for w in self._windows if w is not None)

    def in_window(self, activity_date: date, window_days: int) -> bool:
        """True if the date falls in (reference_date - window_days, reference_date]."""
        start = self.reference_date - timedelta(days=window_days)
        return start < activity_date <= self.reference_date

    def _improves(
        self,
        value: float,
        achieved: date,
        best: Optional[float],
        best_date: Optional[date],
    ) -> bool:
        if self.metric.is_better(value, best):
            return True
        # Exact tie: keep whichever was achieved first
        return value == best and best_date is not None and achieved < best_date

    def ingest(self, effort: Effort, activity_date: Optional[date] = None) -> bool:
        """
        Fold one effort into the profile.

        Args:
            effort: Effort for one duration bucket
            activity_date: Date of the activity; defaults to effort.achieved_on

        Returns:
            True if any tracked value changed

        Raises:
            DurationBucketMismatchError: if the effort's duration is not one
                of this profile's buckets
        """
        duration = effort.duration_seconds
        if duration not in self._bucket_set:
            raise DurationBucketMismatchError(
                self._buckets,
                [duration],
                details={"athlete_id": self.athlete_id, "sport": self.sport.value},
            )

        achieved = activity_date or effort.achieved_on
        value = effort.value
        changed = False

        for window in self._windows:
            key = (duration, window)
            record = self._records.get(key) or PowerDurationRecord(
                athlete_id=self.athlete_id,
                sport=self.sport,
                metric=self.metric,
                duration_seconds=duration,
                time_window_days=window,
            )
            updates: Dict[str, object] = {}

            if record.most_recent_date is None or achieved > record.most_recent_date:
                updates["most_recent"] = value
                updates["most_recent_date"] = achieved

            if self._improves(value, achieved, record.all_time_best, record.achieved_date):
                updates["all_time_best"] = value
                updates["achieved_date"] = achieved
                if window is None:
                    logger.debug(
                        f"New all-time best for {self.athlete_id}/{self.sport.value} "
                        f"{duration}s: {value:.1f} on {achieved.isoformat()}"
                    )

            in_range = window is None or self.in_window(achieved, window)
            if in_range and self._improves(value, achieved, record.range_best, record.range_best_date):
                updates["range_best"] = value
                updates["range_best_date"] = achieved

            if updates or key not in self._records:
                self._records[key] = record.model_copy(update=updates)
                changed = changed or bool(updates)

        return changed

    def ingest_many(self, efforts: Iterable[Effort]) -> int:
        """
        Ingest efforts in date order.

        Returns:
            Number of efforts that changed at least one tracked value
        """
        ordered = sorted(efforts, key=lambda e: (e.achieved_on, e.duration_seconds))
        return sum(1 for effort in ordered if self.ingest(effort))

    def _check_window(self, window_days: Optional[int]) -> None:
        if window_days is not None and window_days not in self._windows:
            raise UnknownTimeWindowError(window_days, self.window_days)

    def query(self, duration_seconds: int, window_days: Optional[int] = None) -> ProfilePoint:
        """
        Current and best values for one bucket.

        ``best`` is the range best when a window is given, otherwise the
        all-time best. Buckets without data come back as zeros.

        Raises:
            UnknownTimeWindowError: if the window is not tracked
        """
        self._check_window(window_days)
        record = self._records.get((duration_seconds, window_days))
        if record is None:
            return ProfilePoint(duration_seconds=duration_seconds)

        best = record.range_best if window_days is not None else record.all_time_best
        return ProfilePoint(
            duration_seconds=duration_seconds,
            current=record.most_recent or 0.0,
            best=best or 0.0,
            all_time_best=record.all_time_best or 0.0,
        )

    def records(self, window_days: Optional[int] = None) -> List[PowerDurationRecord]:
        """Stored records for one window, ordered by duration."""
        self._check_window(window_days)
        return [
            self._records[(duration, window_days)]
            for duration in self._buckets
            if (duration, window_days) in self._records
        ]

    def curve(self, window_days: Optional[int] = None) -> List[ProfilePoint]:
        """One ProfilePoint per bucket, zeros where there is no data."""
        return [self.query(duration, window_days) for duration in self._buckets]

    def bests(self, window_days: Optional[int] = None) -> Dict[int, float]:
        """Best value per bucket, omitting buckets without data."""
        return {
            point.duration_seconds: point.best
            for point in self.curve(window_days)
            if point.best > 0
        }
