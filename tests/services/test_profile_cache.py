"""Tests for the explicit profile cache."""

import threading

from training_load_engine.models import Sport
from training_load_engine.services.profile_cache import ProfileCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestProfileCache:
    """Tests for keyed get, build and invalidation."""

    def test_get_or_build_builds_once(self):
        cache = ProfileCache()
        builds = []

        def builder():
            builds.append(1)
            return {300: 280.0}

        first = cache.get_or_build("a", Sport.CYCLING, builder, window_days=90)
        second = cache.get_or_build("a", Sport.CYCLING, builder, window_days=90)

        assert first == second == {300: 280.0}
        assert len(builds) == 1

    def test_keys_are_separate_per_window(self):
        cache = ProfileCache()
        cache.set("a", Sport.CYCLING, "all-time")
        cache.set("a", Sport.CYCLING, "90d", window_days=90)

        assert cache.get("a", Sport.CYCLING) == "all-time"
        assert cache.get("a", Sport.CYCLING, 90) == "90d"
        assert cache.get("a", Sport.CYCLING, 30) is None

    def test_sport_is_normalized(self):
        cache = ProfileCache()
        cache.set("a", "VirtualRide", "profile")
        assert cache.get("a", Sport.CYCLING) == "profile"

    def test_invalidate_one_sport(self):
        cache = ProfileCache()
        cache.set("a", Sport.CYCLING, 1)
        cache.set("a", Sport.CYCLING, 2, window_days=90)
        cache.set("a", Sport.RUNNING, 3)
        cache.set("b", Sport.CYCLING, 4)

        assert cache.invalidate("a", Sport.CYCLING) == 2
        assert cache.get("a", Sport.CYCLING) is None
        assert cache.get("a", Sport.RUNNING) == 3
        assert cache.get("b", Sport.CYCLING) == 4

    def test_invalidate_athlete(self):
        cache = ProfileCache()
        cache.set("a", Sport.CYCLING, 1)
        cache.set("a", Sport.RUNNING, 2)
        cache.set("b", Sport.CYCLING, 3)

        assert cache.invalidate("a") == 2
        assert len(cache) == 1

    def test_clear(self):
        cache = ProfileCache()
        cache.set("a", Sport.CYCLING, 1)
        cache.clear()
        assert len(cache) == 0

    def test_ttl_expiry(self):
        clock = FakeClock()
        cache = ProfileCache(ttl_seconds=60, clock=clock)
        cache.set("a", Sport.CYCLING, "profile")

        clock.now = 59.0
        assert cache.get("a", Sport.CYCLING) == "profile"

        clock.now = 60.0
        assert cache.get("a", Sport.CYCLING) is None
        assert len(cache) == 0

    def test_concurrent_access(self):
        cache = ProfileCache()
        errors = []

        def worker(n):
            try:
                for i in range(200):
                    cache.set(f"athlete-{n}", Sport.CYCLING, i, window_days=i % 3)
                    cache.get(f"athlete-{n}", Sport.CYCLING, i % 3)
                    if i % 50 == 0:
                        cache.invalidate(f"athlete-{n}")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(cache) == 8 * 3
