"""Critical power (CP, W') model fitting.

Two-parameter hyperbolic model: P(t) = W'/t + CP.

Regressing power on 1/t is exact for this model, so a plain least-squares
line gives slope = W' (joules) and intercept = CP (watts) without any
iterative fitting.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import get_settings
from ..models import (
    CPEffort,
    CPFitOutcome,
    CPRejectionReason,
    CPResult,
    MetricKind,
    SamplePoint,
    Sport,
)
from .efforts import extract_efforts
from .power_profile import PowerDurationProfile

logger = logging.getLogger(__name__)

MIN_DISTINCT_DURATIONS = 3


@dataclass(frozen=True)
class CPProtocol:
    """A structured multi-effort CP test."""
    name: str
    durations: Tuple[int, ...]  # seconds
    max_gap_days: int  # all efforts must fall within this many days


CP_PROTOCOLS: Dict[str, CPProtocol] = {
    "3-5-12": CPProtocol(name="3, 5 and 12 minute efforts", durations=(180, 300, 720), max_gap_days=3),
    "3-8-20": CPProtocol(name="3, 8 and 20 minute efforts", durations=(180, 480, 1200), max_gap_days=3),
    "5-12-20": CPProtocol(name="5, 12 and 20 minute efforts", durations=(300, 720, 1200), max_gap_days=3),
}


@dataclass
class LinearFit:
    """Least-squares fit of power against 1/duration."""
    w_prime: float  # slope, joules
    cp: float  # intercept, watts
    r_squared: float

    def predict(self, duration_seconds: int) -> float:
        return predict_power(self.cp, self.w_prime, duration_seconds)


def predict_power(cp_watts: float, w_prime_joules: float, duration_seconds: float) -> float:
    """Power sustainable for a duration under the CP model."""
    return cp_watts + w_prime_joules / duration_seconds


def time_to_exhaustion(cp_watts: float, w_prime_joules: float, power: float) -> Optional[float]:
    """
    Seconds a constant power can be held under the CP model.

    Returns:
        Seconds until W' is exhausted, or None at or below CP (sustainable)
    """
    if power <= cp_watts:
        return None
    return w_prime_joules / (power - cp_watts)


def _linear_fit(efforts: Sequence[CPEffort]) -> LinearFit:
    xs = [1.0 / e.duration_seconds for e in efforts]
    ys = [e.power for e in efforts]
    n = len(xs)
    mean_x = sum(xs) / n
    mean_y = sum(ys) / n

    sxx = sum((x - mean_x) ** 2 for x in xs)
    sxy = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    slope = sxy / sxx
    intercept = mean_y - slope * mean_x

    ss_res = sum((y - (intercept + slope * x)) ** 2 for x, y in zip(xs, ys))
    ss_tot = sum((y - mean_y) ** 2 for y in ys)
    r_squared = 1.0 - ss_res / ss_tot if ss_tot > 0 else 1.0

    return LinearFit(w_prime=slope, cp=intercept, r_squared=r_squared)


def _residual_pct(fit: LinearFit, effort: CPEffort) -> float:
    predicted = fit.predict(effort.duration_seconds)
    if predicted <= 0:
        return math.inf
    return abs(effort.power - predicted) / predicted


def _prevalidate(
    efforts: Iterable[CPEffort],
    min_duration: int,
    min_power: float,
) -> Tuple[List[CPEffort], List[CPEffort]]:
    """Split efforts into candidates (best per duration) and rejections."""
    rejected: List[CPEffort] = []
    by_duration: Dict[int, List[CPEffort]] = defaultdict(list)

    for effort in efforts:
        if (
            effort.duration_seconds <= 0
            or not math.isfinite(effort.power)
            or effort.power <= 0
        ):
            rejected.append(effort.rejected(CPRejectionReason.INVALID_VALUE))
        elif effort.duration_seconds < min_duration:
            rejected.append(effort.rejected(CPRejectionReason.DURATION_TOO_SHORT))
        elif effort.power < min_power:
            rejected.append(effort.rejected(CPRejectionReason.POWER_TOO_LOW))
        else:
            by_duration[effort.duration_seconds].append(effort)

    candidates: List[CPEffort] = []
    for duration in sorted(by_duration):
        group = by_duration[duration]
        # Highest power wins; first one offered wins a tie
        best_index = max(range(len(group)), key=lambda i: group[i].power)
        candidates.append(group[best_index])
        rejected.extend(
            e.rejected(CPRejectionReason.DUPLICATE_DURATION)
            for i, e in enumerate(group)
            if i != best_index
        )

    return candidates, rejected


def _refuse(
    candidates: Iterable[CPEffort],
    rejected: List[CPEffort],
    reason: CPRejectionReason,
) -> CPFitOutcome:
    all_rejected = list(rejected) + [
        e if e.rejection_reason else e.rejected(reason, e.residual_pct) for e in candidates
    ]
    logger.info(f"Critical power fit refused ({reason.value}); {len(all_rejected)} efforts rejected")
    return CPFitOutcome(result=None, efforts_rejected=all_rejected, reason=reason)


def fit_critical_power(
    efforts: Iterable[CPEffort],
    test_date: Optional[date] = None,
    protocol: str = "field",
    sport: Sport = Sport.CYCLING,
    tolerance: Optional[float] = None,
    min_duration: Optional[int] = None,
    min_power: Optional[float] = None,
) -> CPFitOutcome:
    """
    Fit CP and W' from maximal efforts at distinct durations.

    Steps:
    1. Reject invalid, too short or too weak efforts; keep the best effort
       per duration.
    2. Refuse the fit if fewer than 3 distinct durations remain
       (``insufficient_points``); every input is returned as rejected.
    3. Fit P against 1/t.
    4. Reject efforts whose residual exceeds ``tolerance`` of the predicted
       power and refit once if at least 3 remain, otherwise refuse
       (``insufficient_points_after_validation``).
    5. Refuse fits with CP <= 0 or W' < 0 (``non_physiological_fit``).

    Args:
        efforts: Candidate maximal efforts
        test_date: Date the result applies to; defaults to the latest effort date
        protocol: Protocol name recorded on the result
        sport: Primary sport
        tolerance: Residual tolerance as a fraction (default from settings)
        min_duration: Shortest usable effort in seconds (default from settings)
        min_power: Lowest usable power in watts (default from settings)

    Returns:
        CPFitOutcome; ``result`` is None when the fit was refused
    """
    settings = get_settings()
    if tolerance is None:
        tolerance = settings.cp_residual_tolerance
    if min_duration is None:
        min_duration = settings.cp_min_effort_seconds
    if min_power is None:
        min_power = settings.cp_min_effort_watts

    candidates, rejected = _prevalidate(efforts, min_duration, min_power)

    if len(candidates) < MIN_DISTINCT_DURATIONS:
        return _refuse(candidates, rejected, CPRejectionReason.INSUFFICIENT_POINTS)

    fit = _linear_fit(candidates)

    used: List[CPEffort] = []
    outliers: List[CPEffort] = []
    for effort in candidates:
        residual = _residual_pct(fit, effort)
        if residual > tolerance:
            outliers.append(effort.rejected(CPRejectionReason.RESIDUAL_EXCEEDS_TOLERANCE, residual))
        else:
            used.append(effort)

    if outliers:
        logger.debug(
            f"Excluding {len(outliers)} effort(s) beyond {tolerance:.0%} residual: "
            f"{[e.duration_seconds for e in outliers]}"
        )
        rejected.extend(outliers)
        if len(used) < MIN_DISTINCT_DURATIONS:
            return _refuse(used, rejected, CPRejectionReason.INSUFFICIENT_POINTS_AFTER_VALIDATION)
        fit = _linear_fit(used)

    if fit.cp <= 0 or fit.w_prime < 0:
        return _refuse(used, rejected, CPRejectionReason.NON_PHYSIOLOGICAL_FIT)

    used = [e.model_copy(update={"residual_pct": _residual_pct(fit, e)}) for e in used]

    if test_date is None:
        dated = [e.achieved_on for e in used if e.achieved_on is not None]
        test_date = max(dated) if dated else date.today()

    result = CPResult(
        cp_watts=fit.cp,
        w_prime_joules=fit.w_prime,
        test_date=test_date,
        protocol_used=protocol,
        sport=sport,
        efforts_used=used,
        efforts_rejected=rejected,
        r_squared=fit.r_squared,
    )
    logger.info(
        f"Critical power fit ({protocol}): CP={fit.cp:.1f}W W'={fit.w_prime:.0f}J "
        f"from {len(used)} efforts, {len(rejected)} rejected"
    )
    return CPFitOutcome(result=result, efforts_rejected=rejected, reason=None)


def detect_protocol_efforts(
    series: Sequence[SamplePoint],
    protocol: str,
    activity_date: date,
    activity_id: Optional[str] = None,
    target_duration: Optional[int] = None,
) -> List[CPEffort]:
    """
    Mean-maximal efforts for a CP protocol's durations in one activity.

    Args:
        series: Power samples
        protocol: Key of CP_PROTOCOLS
        activity_date: Date of the activity
        activity_id: Optional source activity identifier
        target_duration: Only look for this one duration (single-effort days)

    Returns:
        CPEffort per satisfiable duration; empty for unknown protocols or
        unusable series
    """
    config = CP_PROTOCOLS.get(protocol)
    if config is None:
        logger.warning(f"Unknown CP protocol '{protocol}' for activity {activity_id}")
        return []

    durations = [target_duration] if target_duration else list(config.durations)
    efforts = extract_efforts(series, durations, activity_date, MetricKind.POWER, activity_id)
    return [
        CPEffort(
            duration_seconds=e.duration_seconds,
            power=e.value,
            achieved_on=e.achieved_on,
            activity_id=e.activity_id,
        )
        for e in efforts
    ]


@dataclass
class ProtocolActivity:
    """A CP-test activity and the efforts detected in it."""
    activity_id: str
    activity_date: date
    protocol: str
    efforts: List[CPEffort] = field(default_factory=list)


@dataclass
class ProtocolSet:
    """Efforts of one protocol gathered across test days."""
    protocol: str
    activity_ids: List[str]
    efforts: List[CPEffort]
    test_date: date
    complete: bool  # every protocol duration is present


def find_complete_protocol_sets(
    activities: Iterable[ProtocolActivity],
    max_gap_days: Optional[int] = None,
) -> List[ProtocolSet]:
    """
    Group CP-test activities by protocol, anchored on the most recent test day.

    Activities older than ``max_gap_days`` before the most recent one of the
    same protocol are left out of the set.

    Args:
        activities: CP-test activities with detected efforts
        max_gap_days: Overrides each protocol's own maximum gap

    Returns:
        One ProtocolSet per known protocol, ordered by protocol key
    """
    grouped: Dict[str, List[ProtocolActivity]] = defaultdict(list)
    for activity in activities:
        if activity.protocol in CP_PROTOCOLS and activity.efforts:
            grouped[activity.protocol].append(activity)

    sets: List[ProtocolSet] = []
    for protocol in sorted(grouped):
        config = CP_PROTOCOLS[protocol]
        gap = config.max_gap_days if max_gap_days is None else max_gap_days
        ordered = sorted(grouped[protocol], key=lambda a: a.activity_date)
        newest = ordered[-1].activity_date
        window = [a for a in ordered if (newest - a.activity_date).days <= gap]

        efforts = [e for a in window for e in a.efforts]
        available = {e.duration_seconds for e in efforts}
        sets.append(
            ProtocolSet(
                protocol=protocol,
                activity_ids=[a.activity_id for a in window],
                efforts=efforts,
                test_date=newest,
                complete=set(config.durations) <= available,
            )
        )

    return sets


def fit_protocol_set(protocol_set: ProtocolSet, sport: Sport = Sport.CYCLING) -> CPFitOutcome:
    """Fit CP from a protocol set; incomplete sets are refused without fitting."""
    if not protocol_set.complete:
        return _refuse(protocol_set.efforts, [], CPRejectionReason.INSUFFICIENT_POINTS)
    return fit_critical_power(
        protocol_set.efforts,
        test_date=protocol_set.test_date,
        protocol=protocol_set.protocol,
        sport=sport,
    )


def efforts_from_profile(
    profile: PowerDurationProfile,
    window_days: Optional[int] = None,
    min_duration: int = 120,
    max_duration: int = 1200,
) -> List[CPEffort]:
    """
    Field efforts for a CP fit taken from a power-duration profile.

    Uses the range best of the given window (or the all-time best) for every
    bucket between ``min_duration`` and ``max_duration``.
    """
    if profile.metric is not MetricKind.POWER:
        return []

    efforts: List[CPEffort] = []
    for record in profile.records(window_days):
        if not min_duration <= record.duration_seconds <= max_duration:
            continue
        if window_days is None:
            value, achieved = record.all_time_best, record.achieved_date
        else:
            value, achieved = record.range_best, record.range_best_date
        if value:
            efforts.append(
                CPEffort(
                    duration_seconds=record.duration_seconds,
                    power=value,
                    achieved_on=achieved,
                )
            )
    return efforts
