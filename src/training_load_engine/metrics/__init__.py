"""Training metrics calculations."""

from .buckets import (
    DEFAULT_DURATION_BUCKETS,
    FIVE_MINUTES,
    SIXTY_MINUTES,
    TWENTY_MINUTES,
    build_duration_ladder,
    validate_buckets,
)
from .efforts import (
    extract_efforts,
    extract_pace_efforts_from_speed,
    mean_maximal,
    speed_to_pace,
    split_contiguous_segments,
)
from .power_profile import PowerDurationProfile
from .critical_power import (
    CP_PROTOCOLS,
    CPProtocol,
    ProtocolActivity,
    ProtocolSet,
    detect_protocol_efforts,
    efforts_from_profile,
    find_complete_protocol_sets,
    fit_critical_power,
    fit_protocol_set,
    predict_power,
    time_to_exhaustion,
)
from .threshold import ThresholdResolver, resolve_threshold
from .fitness import (
    ATL_TIME_CONSTANT,
    CTL_TIME_CONSTANT,
    DailyLoad,
    LoadState,
    ProgressCallback,
    advance,
    aggregate_daily_load,
    append_day,
    build_pmc,
    calculate_ewma,
    fill_daily_gaps,
    iter_series,
    latest_form,
    recompute_series,
)
from .stress import (
    activity_load_from_power,
    calculate_intensity_factor,
    calculate_normalized_power,
    calculate_tss,
)

__all__ = [
    # Duration buckets
    "DEFAULT_DURATION_BUCKETS",
    "FIVE_MINUTES",
    "SIXTY_MINUTES",
    "TWENTY_MINUTES",
    "build_duration_ladder",
    "validate_buckets",
    # Effort extraction
    "extract_efforts",
    "extract_pace_efforts_from_speed",
    "mean_maximal",
    "speed_to_pace",
    "split_contiguous_segments",
    # Profile
    "PowerDurationProfile",
    # Critical power
    "CP_PROTOCOLS",
    "CPProtocol",
    "ProtocolActivity",
    "ProtocolSet",
    "detect_protocol_efforts",
    "efforts_from_profile",
    "find_complete_protocol_sets",
    "fit_critical_power",
    "fit_protocol_set",
    "predict_power",
    "time_to_exhaustion",
    # Threshold
    "ThresholdResolver",
    "resolve_threshold",
    # Fitness model
    "ATL_TIME_CONSTANT",
    "CTL_TIME_CONSTANT",
    "DailyLoad",
    "LoadState",
    "ProgressCallback",
    "advance",
    "aggregate_daily_load",
    "append_day",
    "build_pmc",
    "calculate_ewma",
    "fill_daily_gaps",
    "iter_series",
    "latest_form",
    "recompute_series",
    # Training stress
    "activity_load_from_power",
    "calculate_intensity_factor",
    "calculate_normalized_power",
    "calculate_tss",
]
