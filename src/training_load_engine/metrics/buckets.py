"""Canonical duration buckets for power-duration and pace-duration curves."""

from typing import List, Sequence, Tuple

from ..config import DEFAULT_DURATION_BUCKETS
from ..exceptions import InvalidDurationBucketsError

# Durations the threshold hierarchy reads from the profile
FIVE_MINUTES = 300
TWENTY_MINUTES = 1200
SIXTY_MINUTES = 3600


def validate_buckets(buckets: Sequence[int]) -> Tuple[int, ...]:
    """
    Check that a bucket set is usable and return it as a tuple.

    Args:
        buckets: Durations in seconds

    Returns:
        The same durations as an immutable tuple

    Raises:
        InvalidDurationBucketsError: if empty, unsorted, duplicated or non-positive
    """
    values = tuple(buckets)
    if not values:
        raise InvalidDurationBucketsError(values)
    if any(not isinstance(d, int) or isinstance(d, bool) or d <= 0 for d in values):
        raise InvalidDurationBucketsError(values)
    if list(values) != sorted(set(values)):
        raise InvalidDurationBucketsError(values)
    return values


def build_duration_ladder(max_seconds: int = 3600) -> List[int]:
    """
    Dense duration ladder for a full mean-maximal curve.

    - every second from 1s to 60s
    - every 5 seconds from 65s to 5 minutes
    - every 30 seconds from 5.5 to 20 minutes
    - every minute from 21 minutes to 1 hour
    - every 5 minutes beyond 1 hour, up to max_seconds

    Args:
        max_seconds: Longest duration to include

    Returns:
        Sorted list of durations in seconds
    """
    if max_seconds <= 0:
        return []

    ladder: List[int] = list(range(1, 61))
    ladder.extend(range(65, 301, 5))
    ladder.extend(range(330, 1201, 30))
    ladder.extend(range(1260, 3601, 60))
    ladder.extend(range(3900, max_seconds + 1, 300))

    return [d for d in ladder if d <= max_seconds]
