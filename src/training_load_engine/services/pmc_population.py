"""
PMC population (backfill) service.

Recomputes the full CTL/ATL/TSB series for an athlete from raw activity
loads. Runs for different athletes may overlap; a second run for the same
athlete and sport is refused while the first one is running.
"""

import threading
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from ..exceptions import PopulationInProgressError
from ..metrics.fitness import (
    LoadState,
    ProgressCallback,
    aggregate_daily_load,
    fill_daily_gaps,
    iter_series,
)
from ..models import ActivityLoad, Sport, TrainingDayRecord
from .base import BaseService

PopulationKey = Tuple[str, Sport]


@dataclass
class PopulationResult:
    """Outcome of one population run."""

    athlete_id: str
    series: Dict[Sport, List[TrainingDayRecord]] = field(default_factory=dict)
    days_processed: int = 0
    total_days: int = 0
    completed: bool = True

    def latest(self, sport: Sport) -> Optional[TrainingDayRecord]:
        records = self.series.get(sport)
        return records[-1] if records else None


class PMCPopulationService(BaseService):
    """Serializes PMC backfills per (athlete, sport)."""

    def __init__(self, logger=None) -> None:
        super().__init__(logger)
        # Keys of populations currently running; emptied as runs finish
        self._active: Set[PopulationKey] = set()
        self._lock = threading.Lock()

    def _claim(self, athlete_id: str, sport: Sport) -> bool:
        key = (athlete_id, sport)
        with self._lock:
            if key in self._active:
                return False
            self._active.add(key)
            return True

    def _release(self, athlete_id: str, sport: Sport) -> None:
        with self._lock:
            self._active.discard((athlete_id, sport))

    def is_populating(self, athlete_id: str, sport: Sport) -> bool:
        """True while a population is running for this athlete and sport."""
        with self._lock:
            return (athlete_id, sport) in self._active

    @contextmanager
    def population_guard(self, athlete_id: str, sports: Sequence[Sport]) -> Iterator[None]:
        """
        Claim the given sports for one population run.

        Raises:
            PopulationInProgressError: if any of them is already claimed
        """
        with ExitStack() as stack:
            for sport in sorted(set(sports), key=lambda s: s.value):
                if not self._claim(athlete_id, sport):
                    raise PopulationInProgressError(athlete_id, sport.value)
                stack.callback(self._release, athlete_id, sport)
            yield

    def populate(
        self,
        athlete_id: str,
        activities: Iterable[ActivityLoad],
        end_date: Optional[date] = None,
        sports: Optional[Sequence[Sport]] = None,
        seeds: Optional[Dict[Sport, LoadState]] = None,
        progress: Optional[ProgressCallback] = None,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> PopulationResult:
        """
        Recompute the daily PMC series for each sport.

        Args:
            athlete_id: Athlete to populate
            activities: Activity loads; grouped by normalized sport and day
            end_date: Last day of every series (e.g. today)
            sports: Restrict to these sports; defaults to every sport present
            seeds: Prior state per sport, for partial repopulation
            progress: Called as progress(current, total, label) after each day
            should_continue: Checked before each day; returning False stops
                the run and the result is marked incomplete

        Returns:
            PopulationResult with one series per sport

        Raises:
            PopulationInProgressError: if the same athlete and sport is
                already being populated
        """
        per_sport = aggregate_daily_load(activities)
        if sports is not None:
            per_sport = {sport: per_sport.get(sport, {}) for sport in sports}
        seeds = seeds or {}

        ordered = sorted(per_sport, key=lambda s: s.value)
        plan = {
            sport: len(fill_daily_gaps(per_sport[sport], end_date=end_date))
            for sport in ordered
        }
        result = PopulationResult(athlete_id=athlete_id, total_days=sum(plan.values()))

        with self.population_guard(athlete_id, ordered):
            self.logger.info(
                f"Populating PMC for athlete {athlete_id}: "
                f"{len(ordered)} sport(s), {result.total_days} day(s)"
            )

            for sport in ordered:
                records: List[TrainingDayRecord] = []
                result.series[sport] = records
                if not plan[sport]:
                    continue

                for record in iter_series(
                    per_sport[sport],
                    seed=seeds.get(sport),
                    end_date=end_date,
                    sport=sport,
                    athlete_id=athlete_id,
                ):
                    if should_continue is not None and not should_continue():
                        result.completed = False
                        break
                    records.append(record)
                    result.days_processed += 1
                    self._report(
                        progress,
                        result.days_processed,
                        result.total_days,
                        f"{sport.value} {record.day.isoformat()}",
                    )

                if not result.completed:
                    break

        if result.completed:
            self.logger.info(f"PMC population finished for athlete {athlete_id}")
        else:
            self.logger.info(
                f"PMC population stopped for athlete {athlete_id} after "
                f"{result.days_processed}/{result.total_days} day(s)"
            )
        return result
