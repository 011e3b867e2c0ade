"""Tests for date normalization, window intersection and adjacent windows."""

from datetime import datetime

import pytest

from trafficboard.engine.periods import (
    GRANULARITY_MONTH,
    GRANULARITY_WEEK,
    adjacent_windows,
    format_clock,
    normalize_period,
    parse_timestamp,
    period_intersects,
)
from trafficboard.exceptions import ValidationError
from trafficboard.models.task import DatePeriod


class TestParseTimestamp:
    def test_naive_values_are_kept(self):
        assert parse_timestamp("2024-05-01T09:00:00") == datetime(2024, 5, 1, 9, 0)

    def test_aware_values_become_naive_utc(self):
        assert parse_timestamp("2024-05-01T11:00:00.000+02:00") == datetime(2024, 5, 1, 9, 0)

    def test_invalid_value_raises_validation_error(self):
        with pytest.raises(ValidationError):
            parse_timestamp("not-a-date")


class TestNormalizePeriod:
    """Date-only inputs are expanded to the 09:00-18:00 working day."""

    def test_date_only_pair(self):
        assert normalize_period("2024-05-01", "2024-05-01") == DatePeriod(
            start="2024-05-01T09:00:00", end="2024-05-01T18:00:00"
        )

    def test_timestamps_pass_through(self):
        period = normalize_period("2024-05-01T10:00:00", "2024-05-01T12:00:00")
        assert period == DatePeriod(start="2024-05-01T10:00:00", end="2024-05-01T12:00:00")

    def test_lone_start_is_completed_on_same_day(self):
        assert normalize_period("2024-05-01", None) == DatePeriod(
            start="2024-05-01T09:00:00", end="2024-05-01T18:00:00"
        )

    def test_lone_end_is_completed_on_same_day(self):
        assert normalize_period(None, "2024-05-03T12:00:00") == DatePeriod(
            start="2024-05-03T09:00:00", end="2024-05-03T12:00:00"
        )

    def test_no_dates(self):
        assert normalize_period(None, None) is None

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError):
            normalize_period("2024-05-02", "2024-05-01")


class TestPeriodIntersects:
    """Windows are closed ranges; date-only window ends cover the whole day."""

    def test_task_inside_single_day_window(self):
        period = DatePeriod(start="2024-05-01T09:00:00", end="2024-05-01T18:00:00")
        assert period_intersects(period, "2024-05-01", "2024-05-01")

    def test_task_spanning_window_start(self):
        period = DatePeriod(start="2024-04-29T09:00:00", end="2024-05-02T18:00:00")
        assert period_intersects(period, "2024-05-01", "2024-05-07")

    def test_task_outside_window(self):
        period = DatePeriod(start="2024-05-08T09:00:00", end="2024-05-08T18:00:00")
        assert not period_intersects(period, "2024-05-01", "2024-05-07")
        before = DatePeriod(start="2024-04-20T09:00:00", end="2024-04-30T18:00:00")
        assert not period_intersects(before, "2024-05-01", "2024-05-07")

    def test_single_date_period(self):
        assert period_intersects(DatePeriod(start="2024-05-03"), "2024-05-01", "2024-05-07")

    def test_empty_period_never_intersects(self):
        assert not period_intersects(None, "2024-01-01", "2030-01-01")
        assert not period_intersects(DatePeriod(), "2024-01-01", "2030-01-01")


class TestAdjacentWindows:
    def test_month_shift(self):
        assert adjacent_windows("2024-05-01", "2024-05-31", GRANULARITY_MONTH) == [
            ("2024-04-01", "2024-04-30"),
            ("2024-06-01", "2024-06-30"),
        ]

    def test_week_shift_is_two_weeks(self):
        assert adjacent_windows("2024-05-06", "2024-05-12", GRANULARITY_WEEK) == [
            ("2024-04-22", "2024-04-28"),
            ("2024-05-20", "2024-05-26"),
        ]

    def test_timestamps_keep_their_shape(self):
        previous, following = adjacent_windows("2024-05-06T00:00:00", "2024-05-12T23:59:59", GRANULARITY_WEEK)
        assert previous == ("2024-04-22T00:00:00", "2024-04-28T23:59:59")
        assert following == ("2024-05-20T00:00:00", "2024-05-26T23:59:59")

    def test_unknown_granularity(self):
        with pytest.raises(ValidationError):
            adjacent_windows("2024-05-01", "2024-05-31", "year")


def test_format_clock():
    assert format_clock("2024-05-01T10:05:00") == "10:05"
    assert format_clock("2024-05-01T10:05:00.000+02:00") == "10:05"
