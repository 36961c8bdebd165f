"""Tests for duration buckets and the power-duration profile."""

import pytest
from datetime import date, timedelta

from training_load_engine.exceptions import (
    DurationBucketMismatchError,
    ErrorCode,
    InvalidDurationBucketsError,
    UnknownTimeWindowError,
)
from training_load_engine.metrics.buckets import (
    DEFAULT_DURATION_BUCKETS,
    build_duration_ladder,
    validate_buckets,
)
from training_load_engine.metrics.efforts import extract_efforts
from training_load_engine.metrics.power_profile import PowerDurationProfile
from training_load_engine.models import Effort, MetricKind, Sport


def effort(duration: int, value: float, day: date, activity_id: str = None) -> Effort:
    return Effort(duration_seconds=duration, value=value, achieved_on=day, activity_id=activity_id)


class TestBuckets:
    """Tests for bucket validation."""

    def test_default_buckets_are_valid(self):
        assert validate_buckets(DEFAULT_DURATION_BUCKETS) == DEFAULT_DURATION_BUCKETS

    @pytest.mark.parametrize("buckets", [[], [60, 30], [30, 30], [0, 30], [-5, 30]])
    def test_invalid_buckets(self, buckets):
        with pytest.raises(InvalidDurationBucketsError) as exc_info:
            validate_buckets(buckets)
        assert exc_info.value.code == ErrorCode.INVALID_DURATION_BUCKETS

    def test_settings_default_matches_canonical_buckets(self):
        from training_load_engine.config import get_settings

        assert tuple(get_settings().duration_buckets) == DEFAULT_DURATION_BUCKETS

    def test_duration_ladder(self):
        ladder = build_duration_ladder(3600)

        assert ladder[:3] == [1, 2, 3]
        assert 60 in ladder and 65 in ladder and 61 not in ladder
        assert 330 in ladder and 335 not in ladder
        assert ladder[-1] == 3600
        assert ladder == sorted(set(ladder))

    def test_duration_ladder_beyond_an_hour(self):
        ladder = build_duration_ladder(5400)
        assert ladder[-2:] == [5100, 5400]


class TestProfileIngest:
    """Tests for most-recent, all-time best and range best tracking."""

    @pytest.fixture
    def profile(self, reference_date):
        return PowerDurationProfile(
            "athlete-1",
            buckets=[60, 300, 1200],
            window_days=[90],
            reference_date=reference_date,
        )

    def test_first_effort_sets_everything(self, profile, reference_date):
        day = reference_date - timedelta(days=10)
        assert profile.ingest(effort(300, 280.0, day))

        record = profile.records()[0]
        assert record.all_time_best == 280.0
        assert record.achieved_date == day
        assert record.most_recent == 280.0
        assert record.most_recent_date == day

    def test_best_and_recent_are_tracked_separately(self, profile, reference_date):
        profile.ingest(effort(300, 300.0, reference_date - timedelta(days=20)))
        profile.ingest(effort(300, 250.0, reference_date - timedelta(days=5)))

        point = profile.query(300)
        assert point.best == 300.0
        assert point.current == 250.0

    def test_older_effort_does_not_replace_most_recent(self, profile, reference_date):
        profile.ingest(effort(300, 250.0, reference_date - timedelta(days=5)))
        profile.ingest(effort(300, 200.0, reference_date - timedelta(days=50)))

        assert profile.query(300).current == 250.0

    def test_zero_power_ride_leaves_current(self, profile, reference_date):
        profile.ingest(effort(60, 250.0, reference_date - timedelta(days=29)))

        dropout = [(second, 0) for second in range(120)]
        for e in extract_efforts(dropout, profile.buckets, reference_date - timedelta(days=10)):
            profile.ingest(e)

        point = profile.query(60)
        assert point.current == 250.0
        assert point.best == 250.0

    def test_range_best_excludes_old_efforts(self, profile, reference_date):
        profile.ingest(effort(300, 350.0, reference_date - timedelta(days=200)))
        profile.ingest(effort(300, 290.0, reference_date - timedelta(days=30)))

        assert profile.query(300, window_days=90).best == 290.0
        assert profile.query(300, window_days=90).all_time_best == 350.0
        assert profile.query(300).best == 350.0

    def test_window_boundaries(self, profile, reference_date):
        assert profile.in_window(reference_date, 90)
        assert profile.in_window(reference_date - timedelta(days=89), 90)
        assert not profile.in_window(reference_date - timedelta(days=90), 90)
        assert not profile.in_window(reference_date + timedelta(days=1), 90)

    def test_tie_keeps_earlier_date(self, profile, reference_date):
        """Two equal 300W efforts: the earlier date is kept."""
        early = reference_date - timedelta(days=40)
        late = reference_date - timedelta(days=10)

        profile.ingest(effort(300, 300.0, early))
        profile.ingest(effort(300, 300.0, late))
        assert profile.records()[0].achieved_date == early

    def test_tie_keeps_earlier_date_when_ingested_late(self, profile, reference_date):
        early = reference_date - timedelta(days=40)
        late = reference_date - timedelta(days=10)

        profile.ingest(effort(300, 300.0, late))
        profile.ingest(effort(300, 300.0, early))

        record = profile.records()[0]
        assert record.achieved_date == early
        assert record.most_recent_date == late

    def test_unknown_bucket_raises(self, profile, reference_date):
        with pytest.raises(DurationBucketMismatchError):
            profile.ingest(effort(45, 400.0, reference_date))

    def test_no_change_returns_false(self, profile, reference_date):
        day = reference_date - timedelta(days=3)
        profile.ingest(effort(60, 400.0, day))
        assert not profile.ingest(effort(60, 350.0, day - timedelta(days=1)))

    def test_ingest_many_orders_by_date(self, profile, reference_date):
        efforts = [
            effort(60, 380.0, reference_date - timedelta(days=1)),
            effort(60, 420.0, reference_date - timedelta(days=8)),
        ]
        assert profile.ingest_many(efforts) == 2
        assert profile.query(60).current == 380.0
        assert profile.query(60).best == 420.0


class TestProfileQuery:
    """Tests for curve and bests queries."""

    def test_missing_bucket_is_zero(self, reference_date):
        profile = PowerDurationProfile("a", buckets=[60, 300], reference_date=reference_date)
        point = profile.query(300)

        assert point.current == 0.0
        assert point.best == 0.0
        assert not point.has_data

    def test_unknown_window_raises(self, reference_date):
        profile = PowerDurationProfile("a", buckets=[60], window_days=[90], reference_date=reference_date)
        with pytest.raises(UnknownTimeWindowError):
            profile.query(60, window_days=30)

    def test_curve_covers_every_bucket(self, reference_date):
        profile = PowerDurationProfile("a", buckets=[60, 300, 1200], reference_date=reference_date)
        profile.ingest(effort(300, 300.0, reference_date))

        curve = profile.curve()
        assert [p.duration_seconds for p in curve] == [60, 300, 1200]
        assert [p.best for p in curve] == [0.0, 300.0, 0.0]

    def test_bests_skip_empty_buckets(self, reference_date):
        profile = PowerDurationProfile.from_efforts(
            "a",
            [effort(300, 300.0, reference_date), effort(1200, 260.0, reference_date)],
            buckets=[60, 300, 1200],
            window_days=[90],
            reference_date=reference_date,
        )
        assert profile.bests(90) == {300: 300.0, 1200: 260.0}

    def test_default_buckets_from_settings(self, reference_date):
        profile = PowerDurationProfile("a", reference_date=reference_date)
        assert profile.buckets == DEFAULT_DURATION_BUCKETS

    def test_pace_profile_lower_is_better(self, reference_date):
        profile = PowerDurationProfile(
            "runner",
            sport=Sport.RUNNING,
            metric=MetricKind.PACE,
            buckets=[300],
            reference_date=reference_date,
        )
        profile.ingest(effort(300, 240.0, reference_date - timedelta(days=3)))
        profile.ingest(effort(300, 255.0, reference_date - timedelta(days=1)))

        point = profile.query(300)
        assert point.best == 240.0
        assert point.current == 255.0
