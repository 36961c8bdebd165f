"""Rebuild a power-duration profile from historical activity samples."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..config import get_settings
from ..exceptions import TrainingEngineError
from ..metrics.efforts import extract_efforts, extract_pace_efforts_from_speed
from ..metrics.fitness import ProgressCallback
from ..metrics.power_profile import PowerDurationProfile
from ..models import ActivitySamples, Effort, MetricKind

logger = logging.getLogger(__name__)


@dataclass
class BackfillSummary:
    """Counts from one backfill run."""

    total: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    efforts_ingested: int = 0
    improved: int = 0
    failed_activity_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "efforts_ingested": self.efforts_ingested,
            "improved": self.improved,
            "failed_activity_ids": list(self.failed_activity_ids),
        }


def _efforts_for(activity: ActivitySamples, profile: PowerDurationProfile) -> Optional[List[Effort]]:
    """Efforts for the profile's metric, or None if the activity has no such series."""
    if profile.metric is MetricKind.POWER:
        if not activity.power:
            return None
        return extract_efforts(
            activity.power,
            profile.buckets,
            activity.activity_date,
            MetricKind.POWER,
            activity.activity_id,
        )

    if activity.pace:
        return extract_efforts(
            activity.pace,
            profile.buckets,
            activity.activity_date,
            MetricKind.PACE,
            activity.activity_id,
        )
    if activity.speed:
        return extract_pace_efforts_from_speed(
            activity.speed,
            profile.buckets,
            activity.activity_date,
            activity.activity_id,
        )
    return None


def backfill_power_profile(
    activities: Iterable[ActivitySamples],
    profile: PowerDurationProfile,
    progress: Optional[ProgressCallback] = None,
) -> BackfillSummary:
    """
    Extract efforts from every activity and fold them into ``profile``.

    Activities are processed oldest first. Activities of another sport, or
    without a series for the profile's metric, are skipped. A series that
    yields no effort (malformed, or shorter than every bucket) counts as a
    failure and does not stop the run.

    Args:
        activities: Historical activities with their sample series
        profile: Profile to update in place
        progress: Called as progress(current, total, label) after each activity

    Returns:
        BackfillSummary with per-outcome counts
    """
    every = max(get_settings().backfill_progress_every, 1)
    ordered = sorted(activities, key=lambda a: (a.activity_date, a.activity_id))
    summary = BackfillSummary(total=len(ordered))
    logger.info(
        f"Backfilling {profile.metric.value} profile for {profile.athlete_id}/"
        f"{profile.sport.value} from {summary.total} activities"
    )

    for index, activity in enumerate(ordered, start=1):
        label = activity.name or activity.activity_id

        if activity.sport is not profile.sport or not activity.has_samples:
            summary.skipped += 1
        else:
            efforts = _efforts_for(activity, profile)
            if efforts is None:
                summary.skipped += 1
            elif not efforts:
                summary.failed += 1
                summary.failed_activity_ids.append(activity.activity_id)
            else:
                try:
                    for effort in efforts:
                        if profile.ingest(effort):
                            summary.improved += 1
                        summary.efforts_ingested += 1
                    summary.processed += 1
                except TrainingEngineError as e:
                    logger.error(f"Failed to ingest activity {activity.activity_id}: {e.message}")
                    summary.failed += 1
                    summary.failed_activity_ids.append(activity.activity_id)

        if progress and (index % every == 0 or index == summary.total):
            progress(index, summary.total, label)

    logger.info(
        f"Backfill finished for {profile.athlete_id}: {summary.processed} processed, "
        f"{summary.skipped} skipped, {summary.failed} failed"
    )
    return summary
