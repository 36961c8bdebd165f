"""Fitness-Fatigue model calculations (CTL, ATL, TSB)."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from ..exceptions import NonContiguousDayError
from ..models import ActivityLoad, Sport, TrainingDayRecord

logger = logging.getLogger(__name__)

# Fixed policy, never fitted from data
CTL_TIME_CONSTANT = 42
ATL_TIME_CONSTANT = 7

# (current, total, label)
ProgressCallback = Callable[[int, int, str], None]


@dataclass(frozen=True)
class LoadState:
    """CTL/ATL at the end of one day; the seed for the next."""

    ctl: float = 0.0
    atl: float = 0.0

    @property
    def tsb(self) -> float:
        return self.ctl - self.atl

    @classmethod
    def from_record(cls, record: TrainingDayRecord) -> "LoadState":
        return cls(ctl=record.ctl, atl=record.atl)


@dataclass
class DailyLoad:
    """Summed load for one calendar day."""

    tss: float = 0.0
    duration_minutes: int = 0


def calculate_ewma(
    current_value: float,
    previous_ewma: float,
    time_constant: int,
) -> float:
    """
    Exponentially Weighted Moving Average.

    Uses the formula: EWMA_n = EWMA_{n-1} + (value - EWMA_{n-1}) / time_constant

    Args:
        current_value: Today's training load
        previous_ewma: Yesterday's EWMA value
        time_constant: Time constant in days (42 for CTL, 7 for ATL)

    Returns:
        New EWMA value
    """
    return previous_ewma + (current_value - previous_ewma) / time_constant


def advance(state: LoadState, tss: float) -> LoadState:
    """Apply one day's TSS to yesterday's state."""
    return LoadState(
        ctl=calculate_ewma(tss, state.ctl, CTL_TIME_CONSTANT),
        atl=calculate_ewma(tss, state.atl, ATL_TIME_CONSTANT),
    )


def _as_daily_load(value: Union[float, DailyLoad, None]) -> DailyLoad:
    if isinstance(value, DailyLoad):
        return value
    return DailyLoad(tss=float(value or 0.0))


def fill_daily_gaps(
    tss_by_date: Mapping[date, Union[float, DailyLoad, None]],
    end_date: Optional[date] = None,
    start_date: Optional[date] = None,
) -> List[Tuple[date, DailyLoad]]:
    """
    Expand a sparse date -> load mapping into one entry per calendar day.

    Days without activity get zero TSS so that CTL and ATL keep decaying.

    Args:
        tss_by_date: Load per activity day (TSS or DailyLoad)
        end_date: Last day to include (e.g. today); defaults to the last activity day
        start_date: First day to include; defaults to the first activity day

    Returns:
        Ascending list of (day, DailyLoad), inclusive of both ends
    """
    if not tss_by_date and (start_date is None or end_date is None):
        return []

    first = start_date or min(tss_by_date)
    last = end_date or max(tss_by_date)

    days: List[Tuple[date, DailyLoad]] = []
    current = first
    while current <= last:
        days.append((current, _as_daily_load(tss_by_date.get(current))))
        current += timedelta(days=1)

    return days


def iter_series(
    tss_by_date: Mapping[date, Union[float, DailyLoad, None]],
    seed: Optional[LoadState] = None,
    end_date: Optional[date] = None,
    start_date: Optional[date] = None,
    sport: Sport = Sport.CYCLING,
    athlete_id: Optional[str] = None,
    progress: Optional[ProgressCallback] = None,
) -> Iterator[TrainingDayRecord]:
    """
    Walk the days in order and yield one TrainingDayRecord per day.

    The caller may stop iterating between days.

    Args:
        tss_by_date: Load per activity day; missing days count as zero
        seed: State of the day before the first day; cold start (0/0) if None
        end_date: Last day to produce
        start_date: First day to produce
        sport: Sport tagged on every record
        athlete_id: Athlete tagged on every record
        progress: Called as progress(current, total, label) after each day

    Yields:
        TrainingDayRecord for each consecutive day
    """
    days = fill_daily_gaps(tss_by_date, end_date=end_date, start_date=start_date)
    state = seed or LoadState()
    total = len(days)

    for index, (day, load) in enumerate(days, start=1):
        state = advance(state, load.tss)
        record = TrainingDayRecord(
            athlete_id=athlete_id,
            sport=sport,
            day=day,
            tss=load.tss,
            ctl=state.ctl,
            atl=state.atl,
            tsb=state.ctl - state.atl,
            duration_minutes=load.duration_minutes,
        )
        if progress:
            progress(index, total, day.isoformat())
        yield record


def recompute_series(
    tss_by_date: Mapping[date, Union[float, DailyLoad, None]],
    seed: Optional[LoadState] = None,
    end_date: Optional[date] = None,
    start_date: Optional[date] = None,
    sport: Sport = Sport.CYCLING,
    athlete_id: Optional[str] = None,
    progress: Optional[ProgressCallback] = None,
) -> List[TrainingDayRecord]:
    """
    Calculate CTL, ATL and TSB for every day from scratch.

    The Fitness-Fatigue (Banister) model uses two exponential moving averages:
    - CTL (Chronic Training Load): 42-day EWMA representing "fitness"
    - ATL (Acute Training Load): 7-day EWMA representing "fatigue"
    - TSB (Training Stress Balance): CTL - ATL representing "form"

    The result depends only on the input, so rerunning it for a backfill
    yields the same series.

    Returns:
        List of TrainingDayRecord, one per calendar day
    """
    return list(
        iter_series(
            tss_by_date,
            seed=seed,
            end_date=end_date,
            start_date=start_date,
            sport=sport,
            athlete_id=athlete_id,
            progress=progress,
        )
    )


def append_day(
    previous: Optional[TrainingDayRecord],
    day: date,
    tss: float,
    duration_minutes: int = 0,
    sport: Sport = Sport.CYCLING,
    athlete_id: Optional[str] = None,
) -> TrainingDayRecord:
    """
    Incremental form of the recurrence for the newest day.

    Args:
        previous: Record of the day before ``day``; None for a cold start
        day: Day to append
        tss: Total TSS of ``day``
        duration_minutes: Total training minutes of ``day``
        sport: Used only for a cold start
        athlete_id: Used only for a cold start

    Returns:
        TrainingDayRecord for ``day``

    Raises:
        NonContiguousDayError: if ``day`` is not the day after ``previous``
    """
    if previous is None:
        state = LoadState()
    else:
        if day != previous.day + timedelta(days=1):
            raise NonContiguousDayError(previous.day, day)
        state = LoadState.from_record(previous)
        sport = previous.sport
        athlete_id = previous.athlete_id

    state = advance(state, tss)
    return TrainingDayRecord(
        athlete_id=athlete_id,
        sport=sport,
        day=day,
        tss=tss,
        ctl=state.ctl,
        atl=state.atl,
        tsb=state.ctl - state.atl,
        duration_minutes=duration_minutes,
    )


def aggregate_daily_load(activities: Iterable[ActivityLoad]) -> Dict[Sport, Dict[date, DailyLoad]]:
    """
    Sum activity TSS and minutes per sport and calendar day.

    Activities without a TSS contribute zero load but still count their minutes.

    Returns:
        sport -> day -> DailyLoad
    """
    aggregated: Dict[Sport, Dict[date, DailyLoad]] = defaultdict(dict)
    seconds: Dict[Tuple[Sport, date], float] = defaultdict(float)

    for activity in activities:
        day_loads = aggregated[activity.sport]
        load = day_loads.setdefault(activity.activity_date, DailyLoad())
        if activity.tss is None:
            logger.debug(f"Activity {activity.activity_id} has no TSS; counted as zero load")
        load.tss += activity.tss or 0.0
        seconds[(activity.sport, activity.activity_date)] += activity.duration_seconds

    # Minutes are rounded once per day, not per activity
    for (sport, day), total in seconds.items():
        aggregated[sport][day].duration_minutes = round(total / 60)

    return dict(aggregated)


def build_pmc(
    activities: Iterable[ActivityLoad],
    end_date: Optional[date] = None,
    athlete_id: Optional[str] = None,
    progress: Optional[ProgressCallback] = None,
) -> Dict[Sport, List[TrainingDayRecord]]:
    """
    Performance Management Chart per sport from raw activity loads.

    Each sport's series runs from its first activity day to ``end_date``
    (e.g. today, so that recent rest days decay the averages).

    Returns:
        sport -> daily TrainingDayRecord series
    """
    per_sport = aggregate_daily_load(activities)
    return {
        sport: recompute_series(
            per_sport[sport],
            end_date=end_date,
            sport=sport,
            athlete_id=athlete_id,
            progress=progress,
        )
        for sport in sorted(per_sport, key=lambda s: s.value)
    }


def latest_form(records: Iterable[TrainingDayRecord], on: date) -> Optional[TrainingDayRecord]:
    """The record for ``on``, or the latest one before it."""
    latest: Optional[TrainingDayRecord] = None
    for record in records:
        if record.day <= on and (latest is None or record.day > latest.day):
            latest = record
    return latest
