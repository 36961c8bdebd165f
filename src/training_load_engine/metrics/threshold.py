"""Functional threshold power (FTP) resolution across data sources.

Sources are tried in a fixed order and the first one that yields a value
wins. Each tier is gated by how old its test is:

1. Fresh lab test: LT2 power, else VT2 power
2. Fresh CP test: CP
3. Trailing power-duration profile: 60 min best, else 20 min best x 0.95,
   else 5 min best x 0.90
4. Lab MAP x 0.85, fresh or stale
5. Stale lab threshold or stale CP, whichever test is more recent
"""

import logging
from datetime import date
from typing import Iterable, Mapping, Optional, TypeVar

from ..config import get_settings
from ..models import CPResult, FTPEstimate, LabResult, ThresholdRecency, ThresholdSource
from .buckets import FIVE_MINUTES, SIXTY_MINUTES, TWENTY_MINUTES

logger = logging.getLogger(__name__)

# Standard estimation factors
TWENTY_MIN_FACTOR = 0.95
FIVE_MIN_FACTOR = 0.90
MAP_FACTOR = 0.85

T = TypeVar("T", LabResult, CPResult)


def latest_on_or_before(results: Iterable[T], as_of: date) -> Optional[T]:
    """Most recent test dated on or before ``as_of``; later tests are ignored."""
    eligible = [r for r in results if r.test_date <= as_of]
    if not eligible:
        return None
    return max(eligible, key=lambda r: r.test_date)


class ThresholdResolver:
    """Resolves one FTP estimate and records which source produced it."""

    def __init__(
        self,
        lab_max_age_days: Optional[int] = None,
        cp_max_age_days: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.lab_max_age_days = (
            lab_max_age_days if lab_max_age_days is not None else settings.lab_max_age_days
        )
        self.cp_max_age_days = (
            cp_max_age_days if cp_max_age_days is not None else settings.cp_max_age_days
        )

    def resolve(
        self,
        lab_results: Iterable[LabResult] = (),
        cp_results: Iterable[CPResult] = (),
        mmp_bests: Optional[Mapping[int, float]] = None,
        as_of: Optional[date] = None,
    ) -> FTPEstimate:
        """
        Resolve FTP for a date.

        Args:
            lab_results: Lab tests for the athlete and sport
            cp_results: CP fits for the athlete and sport
            mmp_bests: Trailing-window best power per duration in seconds,
                e.g. ``profile.bests(90)``; zeros count as missing
            as_of: Date to resolve for; defaults to today

        Returns:
            FTPEstimate with value None and source "none" when nothing is available
        """
        as_of = as_of or date.today()
        bests = mmp_bests or {}

        lab = latest_on_or_before(lab_results, as_of)
        cp = latest_on_or_before(cp_results, as_of)

        lab_age = (as_of - lab.test_date).days if lab else None
        cp_age = (as_of - cp.test_date).days if cp else None
        recency = ThresholdRecency(
            lab_age_days=lab_age,
            cp_age_days=cp_age,
            lab_fresh=lab_age is not None and lab_age <= self.lab_max_age_days,
            cp_fresh=cp_age is not None and cp_age <= self.cp_max_age_days,
        )

        def estimate(value: float, source: ThresholdSource) -> FTPEstimate:
            logger.debug(f"FTP resolved from {source.value}: {value:.1f}W (as of {as_of.isoformat()})")
            return FTPEstimate(value=round(value, 1), source=source, recency=recency)

        # 1. Fresh lab secondary threshold
        if lab and recency.lab_fresh:
            if lab.lt2_power:
                return estimate(lab.lt2_power, ThresholdSource.LAB_LT2_FRESH)
            if lab.vt2_power:
                return estimate(lab.vt2_power, ThresholdSource.LAB_VT2_FRESH)

        # 2. Fresh CP test
        if cp and recency.cp_fresh and cp.cp_watts > 0:
            return estimate(cp.cp_watts, ThresholdSource.CP_FRESH)

        # 3. Trailing power-duration profile
        if bests.get(SIXTY_MINUTES, 0) > 0:
            return estimate(bests[SIXTY_MINUTES], ThresholdSource.MMP_90D_1H)
        if bests.get(TWENTY_MINUTES, 0) > 0:
            return estimate(bests[TWENTY_MINUTES] * TWENTY_MIN_FACTOR, ThresholdSource.MMP_90D_20MIN)
        if bests.get(FIVE_MINUTES, 0) > 0:
            return estimate(bests[FIVE_MINUTES] * FIVE_MIN_FACTOR, ThresholdSource.MMP_90D_5MIN)

        # 4. Lab MAP, regardless of age
        if lab and lab.map_power:
            source = ThresholdSource.LAB_MAP_FRESH if recency.lab_fresh else ThresholdSource.LAB_MAP_STALE
            return estimate(lab.map_power * MAP_FACTOR, source)

        # 5. Stale lab threshold vs. stale CP: the more recent test wins, lab on a tie
        stale_lab = lab.secondary_threshold if lab and not recency.lab_fresh else None
        stale_cp = cp.cp_watts if cp and not recency.cp_fresh and cp.cp_watts > 0 else None

        if stale_lab and (stale_cp is None or lab_age <= cp_age):
            source = ThresholdSource.LAB_LT2_STALE if lab.lt2_power else ThresholdSource.LAB_VT2_STALE
            return estimate(stale_lab, source)
        if stale_cp:
            return estimate(stale_cp, ThresholdSource.CP_STALE)

        logger.info(f"No threshold source available as of {as_of.isoformat()}")
        return FTPEstimate(value=None, source=ThresholdSource.NONE, recency=recency)


def resolve_threshold(
    lab_results: Iterable[LabResult] = (),
    cp_results: Iterable[CPResult] = (),
    mmp_bests: Optional[Mapping[int, float]] = None,
    as_of: Optional[date] = None,
) -> FTPEstimate:
    """Resolve FTP with the configured freshness windows."""
    return ThresholdResolver().resolve(lab_results, cp_results, mmp_bests, as_of)
