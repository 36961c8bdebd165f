"""Mean-maximal effort extraction from per-second sample series."""

import logging
import math
import numbers
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from ..models import Effort, MetricKind, SamplePoint

logger = logging.getLogger(__name__)

METERS_PER_KM = 1000.0


def split_contiguous_segments(
    series: Sequence[SamplePoint],
    metric: MetricKind = MetricKind.POWER,
) -> Optional[List[List[float]]]:
    """
    Validate a sample series and split it into gap-free runs of seconds.

    A missing second (a jump in the timestamp or a None value) ends the
    current segment; windows never span a gap.

    Args:
        series: (elapsed_second, value) pairs for one activity
        metric: Metric the values represent. Pace must be strictly positive.

    Returns:
        List of contiguous value segments, or None if the series is empty or
        malformed (non-increasing or fractional timestamps, NaN/inf or
        negative values, zero pace).
    """
    if not series:
        return None

    segments: List[List[float]] = []
    current: List[float] = []
    previous_second: Optional[int] = None

    for point in series:
        try:
            second, value = point
        except (TypeError, ValueError):
            return None

        if isinstance(second, bool) or not isinstance(second, numbers.Real):
            return None
        if not math.isfinite(second) or second != int(second):
            return None
        second = int(second)

        if previous_second is not None and second <= previous_second:
            return None

        if value is None:
            if current:
                segments.append(current)
                current = []
            previous_second = second
            continue

        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            return None
        value = float(value)
        if not math.isfinite(value) or value < 0:
            return None
        if metric is MetricKind.PACE and value == 0:
            return None

        if previous_second is not None and second != previous_second + 1 and current:
            segments.append(current)
            current = []

        current.append(value)
        previous_second = second

    if current:
        segments.append(current)

    return segments or None


def mean_maximal(
    segments: Iterable[Sequence[float]],
    durations: Iterable[int],
    higher_is_better: bool = True,
) -> Dict[int, float]:
    """
    Best sliding-window average for every duration.

    Uses one prefix sum per segment, so each duration costs O(n) instead of
    O(n * d).

    Args:
        segments: Contiguous runs of per-second values
        durations: Window lengths in seconds
        higher_is_better: Maximize (power, speed) or minimize (pace)

    Returns:
        Mapping of duration to best average. Durations longer than every
        segment are absent.
    """
    prefixes: List[List[float]] = []
    for segment in segments:
        prefix = [0.0]
        running = 0.0
        for value in segment:
            running += value
            prefix.append(running)
        prefixes.append(prefix)

    best: Dict[int, float] = {}
    for duration in durations:
        if duration <= 0:
            continue
        best_sum: Optional[float] = None
        for prefix in prefixes:
            n = len(prefix) - 1
            if n < duration:
                continue
            for i in range(n - duration + 1):
                window_sum = prefix[i + duration] - prefix[i]
                if best_sum is None:
                    best_sum = window_sum
                elif higher_is_better and window_sum > best_sum:
                    best_sum = window_sum
                elif not higher_is_better and window_sum < best_sum:
                    best_sum = window_sum
        if best_sum is not None:
            best[duration] = best_sum / duration

    return best


def extract_efforts(
    series: Sequence[SamplePoint],
    durations: Iterable[int],
    activity_date: date,
    metric: MetricKind = MetricKind.POWER,
    activity_id: Optional[str] = None,
) -> List[Effort]:
    """
    Extract the best sustained effort for each target duration.

    Power efforts are maximum window averages; pace efforts are minimum
    window averages (lower seconds per km is faster). A power window that
    averages zero (a dropped sensor) yields no effort.

    Args:
        series: (elapsed_second, value) pairs for one activity
        durations: Target durations in seconds
        activity_date: Date tagged onto every effort
        metric: POWER or PACE
        activity_id: Optional source activity identifier

    Returns:
        One Effort per satisfiable duration, ordered by duration. Empty for a
        missing or malformed series.
    """
    segments = split_contiguous_segments(series, metric)
    if segments is None:
        if series:
            logger.warning(
                f"Rejected malformed {metric.value} series for activity {activity_id or '<unknown>'}"
            )
        return []

    best = mean_maximal(segments, sorted(set(durations)), metric.higher_is_better)

    return [
        Effort(
            duration_seconds=duration,
            value=value,
            achieved_on=activity_date,
            activity_id=activity_id,
        )
        for duration, value in sorted(best.items())
        if value > 0 or not metric.higher_is_better
    ]


def speed_to_pace(speed_mps: float) -> float:
    """
    Convert speed to pace.

    Args:
        speed_mps: Speed in meters per second

    Returns:
        Pace in seconds per km, or 0.0 when not moving
    """
    if speed_mps <= 0:
        return 0.0
    return METERS_PER_KM / speed_mps


def extract_pace_efforts_from_speed(
    series: Sequence[SamplePoint],
    durations: Iterable[int],
    activity_date: date,
    activity_id: Optional[str] = None,
) -> List[Effort]:
    """
    Pace efforts derived from a speed series.

    The best average speed per window is converted to pace, which keeps
    stopped samples (zero speed) usable.

    Args:
        series: (elapsed_second, speed m/s) pairs
        durations: Target durations in seconds
        activity_date: Date tagged onto every effort
        activity_id: Optional source activity identifier

    Returns:
        Pace efforts in seconds per km, ordered by duration
    """
    segments = split_contiguous_segments(series, MetricKind.POWER)
    if segments is None:
        if series:
            logger.warning(f"Rejected malformed speed series for activity {activity_id or '<unknown>'}")
        return []

    best_speed = mean_maximal(segments, sorted(set(durations)), higher_is_better=True)

    return [
        Effort(
            duration_seconds=duration,
            value=speed_to_pace(speed),
            achieved_on=activity_date,
            activity_id=activity_id,
        )
        for duration, speed in sorted(best_speed.items())
        if speed > 0
    ]
