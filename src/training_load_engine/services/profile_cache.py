"""
Explicit cache for derived profile data.

Entries are keyed by (athlete, sport, window) and only leave the cache when
the caller invalidates them or their TTL runs out.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from ..models import Sport, normalize_sport

logger = logging.getLogger(__name__)

# (athlete_id, sport, window_days); window None is all-time
CacheKey = Tuple[str, Sport, Optional[int]]


class ProfileCache:
    """Thread-safe in-memory cache with optional TTL."""

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            ttl_seconds: Entry lifetime; None keeps entries until invalidated
            clock: Time source in seconds
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def key(athlete_id: str, sport, window_days: Optional[int] = None) -> CacheKey:
        return (athlete_id, normalize_sport(sport), window_days)

    def _expired(self, stored_at: float) -> bool:
        return self.ttl_seconds is not None and self._clock() - stored_at >= self.ttl_seconds

    def get(self, athlete_id: str, sport, window_days: Optional[int] = None) -> Optional[Any]:
        """Cached value, or None if missing or expired."""
        key = self.key(athlete_id, sport, window_days)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._expired(stored_at):
                del self._entries[key]
                return None
            return value

    def set(self, athlete_id: str, sport, value: Any, window_days: Optional[int] = None) -> None:
        key = self.key(athlete_id, sport, window_days)
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def get_or_build(
        self,
        athlete_id: str,
        sport,
        builder: Callable[[], Any],
        window_days: Optional[int] = None,
    ) -> Any:
        """
        Return the cached value, building and storing it on a miss.

        The builder runs outside the lock; if two callers miss at once both
        build and the last one stored wins.
        """
        cached = self.get(athlete_id, sport, window_days)
        if cached is not None:
            return cached

        logger.debug(f"Profile cache miss for {self.key(athlete_id, sport, window_days)}")
        value = builder()
        self.set(athlete_id, sport, value, window_days)
        return value

    def invalidate(self, athlete_id: str, sport=None) -> int:
        """
        Drop every entry for an athlete, or only for one sport.

        Returns:
            Number of entries removed
        """
        target = normalize_sport(sport) if sport is not None else None
        with self._lock:
            doomed = [
                key for key in self._entries
                if key[0] == athlete_id and (target is None or key[1] is target)
            ]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug(f"Invalidated {len(doomed)} cached profile(s) for {athlete_id}")
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
