"""End-to-end: samples to profile to FTP to PMC."""

import pytest
from datetime import date, timedelta

from training_load_engine.metrics.fitness import latest_form
from training_load_engine.metrics.power_profile import PowerDurationProfile
from training_load_engine.metrics.stress import activity_load_from_power
from training_load_engine.metrics.threshold import resolve_threshold
from training_load_engine.models import ActivitySamples, Sport, ThresholdSource
from training_load_engine.services import PMCPopulationService, backfill_power_profile


TODAY = date(2024, 6, 30)


def activity_day(n: int) -> date:
    """Day 1 is 89 days ago, day 90 is today."""
    return TODAY - timedelta(days=90 - n)


@pytest.fixture
def ninety_days(make_series):
    activities = []
    for n in range(1, 91):
        if n == 80:
            power = make_series(220, 3600)
        elif n % 3 == 0:
            power = make_series(180, 2700)
        else:
            continue
        activities.append(
            ActivitySamples(activity_id=f"ride-{n}", date=activity_day(n), sport="Ride", power=power)
        )
    return activities


class TestNinetyDayScenario:
    """A single 60-minute 220W effort on day 80 and no lab or CP data."""

    def test_ftp_from_hour_best(self, ninety_days):
        profile = PowerDurationProfile("athlete-1", window_days=[90], reference_date=TODAY)
        summary = backfill_power_profile(ninety_days, profile)

        assert summary.failed == 0
        assert summary.processed == len(ninety_days)

        estimate = resolve_threshold(mmp_bests=profile.bests(90), as_of=TODAY)

        assert estimate.value == 220.0
        assert estimate.source == ThresholdSource.MMP_90D_1H
        assert estimate.recency.lab_age_days is None
        assert estimate.recency.cp_age_days is None

    def test_pmc_with_resolved_ftp(self, ninety_days):
        profile = PowerDurationProfile("athlete-1", window_days=[90], reference_date=TODAY)
        backfill_power_profile(ninety_days, profile)
        ftp = resolve_threshold(mmp_bests=profile.bests(90), as_of=TODAY).value

        loads = [
            activity_load_from_power(
                [value for _, value in a.power],
                ftp,
                a.activity_date,
                sport=a.sport,
                activity_id=a.activity_id,
            )
            for a in ninety_days
        ]
        result = PMCPopulationService().populate("athlete-1", loads, end_date=TODAY)
        series = result.series[Sport.CYCLING]

        assert series[0].day == activity_day(3)
        assert series[-1].day == TODAY
        assert all(record.tsb == record.ctl - record.atl for record in series)

        hour_ride = next(r for r in series if r.day == activity_day(80))
        assert hour_ride.tss == pytest.approx(100.0)

        today = latest_form(series, TODAY)
        assert today.ctl > 0
        assert today.duration_minutes == 45
