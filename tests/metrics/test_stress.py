"""Tests for power-based training stress calculations."""

import pytest
from datetime import date

from training_load_engine.metrics.stress import (
    activity_load_from_power,
    calculate_intensity_factor,
    calculate_normalized_power,
    calculate_tss,
)
from training_load_engine.models import Sport


class TestNormalizedPower:
    """Tests for Normalized Power calculation."""

    def test_np_steady_power(self):
        """Steady power should give NP equal to average power."""
        np = calculate_normalized_power([200] * (30 * 60))
        assert np == pytest.approx(200.0)

    def test_np_variable_power_higher_than_avg(self):
        """Variable power should give NP higher than average."""
        power_samples = []
        for _ in range(30):
            power_samples.extend([100] * 30)
            power_samples.extend([300] * 30)

        np = calculate_normalized_power(power_samples)
        avg_power = sum(power_samples) / len(power_samples)

        assert np > avg_power, f"NP ({np}) should be higher than avg ({avg_power})"

    def test_np_empty_samples(self):
        assert calculate_normalized_power([]) == 0.0

    def test_np_insufficient_samples(self):
        assert calculate_normalized_power([200, 200]) == 0.0

    def test_np_short_ride_uses_whole_series(self):
        assert calculate_normalized_power([200] * 5) == pytest.approx(200.0)

    def test_np_dropouts_count_as_zero(self):
        samples = [200] * 60 + [None] * 60
        np = calculate_normalized_power(samples)
        assert 0 < np < 200

    def test_np_sample_rate(self):
        np_1hz = calculate_normalized_power([200] * 60, sample_rate_hz=1)
        np_2hz = calculate_normalized_power([200] * 120, sample_rate_hz=2)
        assert np_1hz == pytest.approx(np_2hz)


class TestIntensityFactor:
    """Tests for Intensity Factor."""

    def test_if_at_threshold(self):
        assert calculate_intensity_factor(250, 250) == 1.0

    def test_if_below_threshold(self):
        assert calculate_intensity_factor(200, 250) == pytest.approx(0.8)

    def test_if_without_ftp(self):
        assert calculate_intensity_factor(200, 0) == 0.0


class TestTSS:
    """TSS = hours x IF^2 x 100."""

    def test_one_hour_at_ftp(self):
        assert calculate_tss(3600, 250, 250) == pytest.approx(100.0)

    def test_one_hour_below_ftp(self):
        # IF 0.8 for one hour
        assert calculate_tss(3600, 200, 250) == pytest.approx(64.0)

    def test_two_hours_at_ftp(self):
        assert calculate_tss(7200, 250, 250) == pytest.approx(200.0)

    def test_invalid_inputs(self):
        assert calculate_tss(3600, 250, 0) == 0.0
        assert calculate_tss(0, 250, 250) == 0.0


class TestActivityLoadFromPower:
    """Tests for building activity loads from power samples."""

    def test_steady_hour(self):
        load = activity_load_from_power([250] * 3600, 250, date(2024, 3, 1), activity_id="ride-1")

        assert load.tss == pytest.approx(100.0)
        assert load.duration_seconds == 3600
        assert load.activity_date == date(2024, 3, 1)
        assert load.sport == Sport.CYCLING

    def test_without_ftp(self):
        load = activity_load_from_power([250] * 600, None, date(2024, 3, 1))

        assert load.tss is None
        assert load.duration_seconds == 600

    def test_explicit_duration(self):
        load = activity_load_from_power([200] * 3600, 250, date(2024, 3, 1), duration_seconds=1800)
        assert load.tss == pytest.approx(32.0)
