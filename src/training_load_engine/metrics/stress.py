"""Power-based training stress calculations (NP, IF, TSS)."""

import logging
from datetime import date
from typing import Optional, Sequence

from ..models import ActivityLoad, Sport

logger = logging.getLogger(__name__)

ROLLING_WINDOW_SECONDS = 30


def calculate_normalized_power(
    power_samples: Sequence[Optional[float]],
    sample_rate_hz: int = 1,
) -> float:
    """
    Calculate Normalized Power (NP) using 30-second rolling average.

    NP accounts for the physiological cost of variable power output.
    It uses a 30-second rolling average, then takes the 4th power mean.

    Formula: NP = (mean(rolling_30s_power^4))^0.25

    Args:
        power_samples: Power values in watts (one per sample); None counts as 0
        sample_rate_hz: Sample rate in Hz (samples per second), default 1

    Returns:
        Normalized Power in watts, or 0.0 if insufficient data
    """
    if not power_samples:
        return 0.0

    samples = [float(p) if p is not None and p > 0 else 0.0 for p in power_samples]
    window_size = ROLLING_WINDOW_SECONDS * sample_rate_hz

    if len(samples) < window_size:
        # Short rides use the whole series, if there are at least a few seconds
        if len(samples) < 3 * sample_rate_hz:
            return 0.0
        window_size = len(samples)

    # Rolling averages with a running sum
    window_sum = sum(samples[:window_size])
    fourth_power_sum = (window_sum / window_size) ** 4
    count = 1
    for i in range(window_size, len(samples)):
        window_sum += samples[i] - samples[i - window_size]
        fourth_power_sum += (window_sum / window_size) ** 4
        count += 1

    normalized_power = (fourth_power_sum / count) ** 0.25
    return round(normalized_power, 1)


def calculate_intensity_factor(normalized_power: float, ftp: float) -> float:
    """
    Calculate Intensity Factor (IF).

    IF represents the relative intensity of the workout compared to FTP.
    IF = 1.0 means the normalized power equals FTP (threshold effort).

    Formula: IF = NP / FTP

    Args:
        normalized_power: Normalized Power in watts
        ftp: Functional Threshold Power in watts

    Returns:
        Intensity Factor (dimensionless ratio)
    """
    if ftp <= 0:
        return 0.0

    return round(normalized_power / ftp, 3)


def calculate_tss(duration_sec: float, normalized_power: float, ftp: float) -> float:
    """
    Calculate Training Stress Score from power.

    TSS quantifies the total training load of a workout. A TSS of 100
    represents one hour at FTP.

    Formula: TSS = hours * IF^2 * 100

    Args:
        duration_sec: Duration of activity in seconds
        normalized_power: Normalized Power in watts
        ftp: Functional Threshold Power in watts

    Returns:
        Training Stress Score
    """
    if ftp <= 0 or duration_sec <= 0:
        return 0.0

    intensity_factor = normalized_power / ftp
    hours = duration_sec / 3600
    return round(hours * intensity_factor ** 2 * 100, 1)


def activity_load_from_power(
    power_samples: Sequence[Optional[float]],
    ftp: Optional[float],
    activity_date: date,
    sport: Sport = Sport.CYCLING,
    activity_id: Optional[str] = None,
    duration_seconds: Optional[int] = None,
    sample_rate_hz: int = 1,
) -> ActivityLoad:
    """
    Build an ActivityLoad with TSS derived from a power series.

    Args:
        power_samples: Power values in watts
        ftp: Threshold in watts; no TSS is computed without one
        activity_date: Calendar day of the activity
        sport: Activity sport
        activity_id: Optional activity identifier
        duration_seconds: Moving time; defaults to the sample count
        sample_rate_hz: Sample rate in Hz

    Returns:
        ActivityLoad, with tss None when FTP or power is unavailable
    """
    if duration_seconds is None:
        duration_seconds = len(power_samples) // max(sample_rate_hz, 1)

    tss: Optional[float] = None
    if ftp and ftp > 0:
        np_watts = calculate_normalized_power(power_samples, sample_rate_hz)
        if np_watts > 0:
            tss = calculate_tss(duration_seconds, np_watts, ftp)
    else:
        logger.debug(f"No FTP for activity {activity_id or '<unknown>'}; TSS left empty")

    return ActivityLoad(
        activity_id=activity_id,
        activity_date=activity_date,
        sport=sport,
        tss=tss,
        duration_seconds=duration_seconds,
    )
