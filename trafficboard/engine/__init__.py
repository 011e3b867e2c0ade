"""Pure calendar logic for trafficboard (no I/O)."""

from trafficboard.engine.colors import color_for, generate_color_for_client
from trafficboard.engine.filtering import filter_tasks, is_completed
from trafficboard.engine.overlap import find_conflicts, intervals_overlap
from trafficboard.engine.periods import (
    GRANULARITY_MONTH,
    GRANULARITY_WEEK,
    adjacent_windows,
    normalize_period,
    parse_timestamp,
    period_intersects,
)

__all__ = [
    "color_for",
    "generate_color_for_client",
    "filter_tasks",
    "is_completed",
    "find_conflicts",
    "intervals_overlap",
    "GRANULARITY_MONTH",
    "GRANULARITY_WEEK",
    "adjacent_windows",
    "normalize_period",
    "parse_timestamp",
    "period_intersects",
]
