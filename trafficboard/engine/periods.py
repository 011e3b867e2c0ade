"""Date and period arithmetic for trafficboard.

Notion stores periods as ISO strings that may be date-only (``2024-05-01``),
naive timestamps (``2024-05-01T09:00:00``) or offset-aware timestamps
(``2024-05-01T09:00:00.000+02:00``). Comparisons are done on naive UTC
datetimes; naive inputs are taken as already being UTC.
"""

from datetime import datetime, time, timedelta, timezone
from typing import List, Optional, Tuple

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from trafficboard.exceptions import ValidationError
from trafficboard.models.constants import DAY_END_TIME, DAY_START_TIME, WEEK_PREWARM_SHIFT_DAYS
from trafficboard.models.task import DatePeriod

GRANULARITY_WEEK = "week"
GRANULARITY_MONTH = "month"


def is_date_only(value: str) -> bool:
    return "T" not in value


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO date or timestamp into a naive UTC datetime.

    Raises:
        ValidationError: If the value is not a valid ISO date/timestamp
    """
    try:
        parsed = isoparse(value)
    except (ValueError, TypeError, OverflowError) as e:
        raise ValidationError(f"Invalid date format: {value!r}") from e
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def upper_bound(value: str) -> datetime:
    """Latest instant covered by a value (end of day for date-only values)."""
    parsed = parse_timestamp(value)
    if is_date_only(value):
        return datetime.combine(parsed.date(), time.max)
    return parsed


def _with_default_time(value: str, default_time: str) -> str:
    return f"{value}T{default_time}" if is_date_only(value) else value


def _date_part(value: str) -> str:
    return value.split("T", 1)[0]


def normalize_period(start_date: Optional[str], end_date: Optional[str]) -> Optional[DatePeriod]:
    """Normalize caller-supplied dates into a full, day-bounded timestamp pair.

    - Date-only start defaults to 09:00, date-only end to 18:00.
    - A lone start (or end) is completed with the same day's 18:00 (or 09:00).
    - End before start is rejected.

    Returns:
        DatePeriod, or None when neither date is given

    Raises:
        ValidationError: On invalid formats or end before start
    """
    if not start_date and not end_date:
        return None

    start = _with_default_time(start_date, DAY_START_TIME) if start_date else None
    end = _with_default_time(end_date, DAY_END_TIME) if end_date else None
    if start is None:
        start = f"{_date_part(end)}T{DAY_START_TIME}"
    if end is None:
        end = f"{_date_part(start)}T{DAY_END_TIME}"

    validate_period_order(start, end)
    return DatePeriod(start=start, end=end)


def validate_period_order(start: str, end: Optional[str]) -> None:
    """Reject a period whose end precedes its start."""
    start_dt = parse_timestamp(start)
    if end is None:
        return
    if parse_timestamp(end) < start_dt:
        raise ValidationError("End date cannot be before start date")


def window_bounds(start: str, end: str) -> Tuple[datetime, datetime]:
    """Closed datetime range covered by a query window."""
    return parse_timestamp(start), upper_bound(end)


def period_intersects(period: Optional[DatePeriod], window_start: str, window_end: str) -> bool:
    """Whether a task period intersects the closed window [window_start, window_end].

    Empty periods never intersect. A single-date period covers only its start
    (the whole day when date-only).
    """
    if period is None or not period.start:
        return False
    period_start = parse_timestamp(period.start)
    period_end = upper_bound(period.end or period.start)
    lower, upper = window_bounds(window_start, window_end)
    return period_start <= upper and period_end >= lower


def _shift(value: str, delta) -> str:
    parse_timestamp(value)  # validate
    # Shift in the value's own offset so the output keeps its shape
    shifted = isoparse(value) + delta
    if is_date_only(value):
        return shifted.date().isoformat()
    return shifted.isoformat()


def adjacent_windows(start: str, end: str, granularity: str) -> List[Tuple[str, str]]:
    """Windows immediately before and after the given one.

    Month views shift by one calendar month; week views by two weeks.
    Shifted values keep the shape of the input (date-only stays date-only).

    Returns:
        [(previous_start, previous_end), (next_start, next_end)]

    Raises:
        ValidationError: On an unknown granularity
    """
    if granularity == GRANULARITY_MONTH:
        backward, forward = relativedelta(months=-1), relativedelta(months=1)
    elif granularity == GRANULARITY_WEEK:
        backward, forward = timedelta(days=-WEEK_PREWARM_SHIFT_DAYS), timedelta(days=WEEK_PREWARM_SHIFT_DAYS)
    else:
        raise ValidationError(f"Unknown pre-warm granularity: {granularity!r}")
    return [
        (_shift(start, backward), _shift(end, backward)),
        (_shift(start, forward), _shift(end, forward)),
    ]


def format_clock(value: str) -> str:
    """HH:MM wall-clock time of a timestamp, in its own offset."""
    try:
        return isoparse(value).strftime("%H:%M")
    except (ValueError, TypeError, OverflowError):
        return value
