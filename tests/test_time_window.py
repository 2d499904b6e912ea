"""Tests for analytics window resolution."""

from datetime import date, datetime

import pytest

from chatpulse.domain.services.time_window import (
    Granularity,
    WindowKind,
    parse_date,
    resolve_time_window,
    select_granularity,
)

NOW = datetime(2024, 3, 15, 14, 30)


class TestParseDate:
    @pytest.mark.parametrize("value", [None, "", "null", "undefined", "None", "not-a-date", 42])
    def test_missing_or_garbage_is_none(self, value):
        assert parse_date(value) is None

    def test_accepts_iso_strings_and_dates(self):
        assert parse_date("2024-03-01") == date(2024, 3, 1)
        assert parse_date("2024-03-01T12:00:00Z") == date(2024, 3, 1)
        assert parse_date(datetime(2024, 3, 1, 8)) == date(2024, 3, 1)
        assert parse_date(date(2024, 3, 1)) == date(2024, 3, 1)


class TestResolveTimeWindow:
    def test_explicit_dates_cover_whole_days(self):
        window = resolve_time_window("2024-03-01", "2024-03-03", now=NOW)

        assert window.start == datetime(2024, 3, 1, 0, 0, 0)
        assert window.end == datetime(2024, 3, 3, 23, 59, 59, 999000)
        assert window.source == "explicit"
        assert window.days == 3

    def test_start_after_end_is_clamped(self):
        window = resolve_time_window("2024-03-10", "2024-03-05", now=NOW)

        assert window.start == datetime(2024, 3, 5)
        assert window.end.date() == date(2024, 3, 5)

    def test_period_tag_used_when_dates_missing(self):
        window = resolve_time_window(selected_period="7d", now=NOW)

        assert window.source == "period"
        assert window.start == datetime(2024, 3, 9)
        assert window.end.date() == date(2024, 3, 15)
        assert window.granularity == Granularity.DAILY

    def test_today_period_is_hourly(self):
        window = resolve_time_window(selected_period="today", now=NOW)

        assert window.start == datetime(2024, 3, 15)
        assert window.granularity == Granularity.HOURLY

    def test_current_month_period(self):
        window = resolve_time_window(selected_period="current_month", now=NOW)

        assert window.start == datetime(2024, 3, 1)
        assert window.granularity == Granularity.WEEKLY

    def test_dashboard_default_is_rolling_day(self):
        window = resolve_time_window("null", "undefined", kind=WindowKind.DASHBOARD, now=NOW)

        assert window.source == "default"
        assert window.start == datetime(2024, 3, 14, 14, 30)
        assert window.end == NOW
        assert window.granularity == Granularity.HOURLY

    def test_report_default_is_thirty_calendar_days(self):
        window = resolve_time_window("garbage", None, kind=WindowKind.REPORT, now=NOW)

        assert window.start == datetime(2024, 2, 15)
        assert window.end.date() == date(2024, 3, 15)
        assert window.days == 30

    def test_granularity_override_wins(self):
        window = resolve_time_window("2024-03-01", "2024-03-01", granularity="daily", now=NOW)

        assert window.granularity == Granularity.DAILY

    def test_unknown_override_is_ignored(self):
        window = resolve_time_window("2024-03-01", "2024-03-01", granularity="monthly", now=NOW)

        assert window.granularity == Granularity.HOURLY


class TestSelectGranularity:
    def test_thresholds(self):
        start = datetime(2024, 3, 1)
        assert select_granularity(start, datetime(2024, 3, 1, 23, 59)) == Granularity.HOURLY
        assert select_granularity(start, datetime(2024, 3, 7, 23, 59)) == Granularity.DAILY
        assert select_granularity(start, datetime(2024, 3, 8, 23, 59)) == Granularity.WEEKLY
