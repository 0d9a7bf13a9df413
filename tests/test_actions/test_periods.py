"""
Tests for Time & Period Utilities
Day boundaries, time-of-day parsing and reporting windows
"""

import pytest
from datetime import datetime, date, time

from actions.periods import (
    PeriodKind,
    combine,
    day_range,
    format_time_of_day,
    is_same_day,
    iter_days,
    parse_time_of_day,
    parse_timing_string,
    period_window,
    start_of_day,
    time_key,
)


NOW = datetime(2024, 6, 10, 21, 0)


class TestDayBoundaries:

    @pytest.mark.unit
    def test_start_of_day_from_datetime(self):
        assert start_of_day(NOW) == datetime(2024, 6, 10)

    @pytest.mark.unit
    def test_start_of_day_from_date(self):
        assert start_of_day(date(2024, 6, 10)) == datetime(2024, 6, 10)

    @pytest.mark.unit
    def test_day_range_is_end_exclusive(self):
        start, end = day_range(NOW)
        assert start == datetime(2024, 6, 10)
        assert end == datetime(2024, 6, 11)

    @pytest.mark.unit
    def test_is_same_day_ignores_time(self):
        assert is_same_day(datetime(2024, 6, 10, 0, 1), datetime(2024, 6, 10, 23, 59))
        assert not is_same_day(datetime(2024, 6, 10, 23, 59), datetime(2024, 6, 11, 0, 0))


class TestTimeOfDay:

    @pytest.mark.unit
    @pytest.mark.parametrize("value,expected", [
        ("08:00", time(8, 0)),
        ("8:00 PM", time(20, 0)),
        ("8:30pm", time(20, 30)),
        ("20:15:45", time(20, 15)),
        (time(7, 5, 30), time(7, 5)),
        ((6, 45), time(6, 45)),
    ])
    def test_parse_valid(self, value, expected):
        assert parse_time_of_day(value) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["25:00", "noon", "", None, (24, 0), 800])
    def test_parse_malformed_returns_none(self, value):
        assert parse_time_of_day(value) is None

    @pytest.mark.unit
    def test_combine_projects_onto_day(self):
        assert combine(date(2024, 6, 10), "20:00") == datetime(2024, 6, 10, 20, 0)

    @pytest.mark.unit
    def test_combine_skips_malformed_time(self):
        assert combine(date(2024, 6, 10), "bogus") is None

    @pytest.mark.unit
    def test_format_time_of_day(self):
        assert format_time_of_day("20:00") == "08:00 PM"
        assert format_time_of_day(datetime(2024, 6, 10, 8, 0)) == "08:00 AM"

    @pytest.mark.unit
    def test_time_key_normalizes_formats(self):
        assert time_key("7:00 PM") == time_key("19:00") == "19:00"

    @pytest.mark.unit
    def test_parse_timing_string_sorts_and_dedups(self):
        parsed = parse_timing_string("9:00 PM, 9:00 AM, bogus, 09:00")
        assert parsed == [time(9, 0), time(21, 0)]

    @pytest.mark.unit
    def test_parse_empty_timing_string(self):
        assert parse_timing_string("") == []


class TestPeriodWindow:

    @pytest.mark.unit
    def test_daily_window(self):
        assert period_window(PeriodKind.DAILY, NOW) == (datetime(2024, 6, 10), NOW)

    @pytest.mark.unit
    def test_weekly_window_starts_six_days_back(self):
        start, end = period_window(PeriodKind.WEEKLY, NOW)
        assert start == datetime(2024, 6, 4)
        assert end == NOW

    @pytest.mark.unit
    def test_monthly_window_starts_29_days_back(self):
        start, _ = period_window("monthly", NOW)
        assert start == datetime(2024, 5, 12)

    @pytest.mark.unit
    def test_unknown_period_rejected(self):
        with pytest.raises(ValueError):
            period_window("yearly", NOW)

    @pytest.mark.unit
    def test_iter_days_is_inclusive(self):
        days = list(iter_days(datetime(2024, 6, 4), NOW))
        assert len(days) == 7
        assert days[0] == date(2024, 6, 4)
        assert days[-1] == date(2024, 6, 10)
