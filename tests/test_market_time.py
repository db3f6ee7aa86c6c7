"""Tests for calendar utilities."""

from datetime import date, datetime, timezone

import pytest

from research_feed.utils.market_time import (
    days_until,
    ensure_aware,
    expires_this_week,
    horizon_bucket,
    in_window,
    parse_timestamp,
    posted_window,
    to_local_date,
)


def test_parse_timestamp_variants():
    assert parse_timestamp("2026-10-16T15:00:00Z") == datetime(2026, 10, 16, 15, tzinfo=timezone.utc)
    # Naive values are read as UTC
    assert parse_timestamp("2026-10-16T15:00:00") == datetime(2026, 10, 16, 15, tzinfo=timezone.utc)
    assert parse_timestamp("2026-10-16").tzinfo is not None
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    assert parse_timestamp("yesterday") is None


def test_ensure_aware_keeps_offsets():
    aware = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert ensure_aware(aware) is aware
    assert ensure_aware(datetime(2026, 1, 1)).tzinfo == timezone.utc


def test_local_date_of_late_evening_utc(tz):
    # 02:00 UTC is still the previous evening in New York
    assert to_local_date("2026-10-17T02:00:00Z", tz) == date(2026, 10, 16)
    assert to_local_date("2026-10-17", tz) == date(2026, 10, 17)
    assert to_local_date("garbage!!!", tz) is None


class TestPostedWindow:
    def test_all_starts_at_epoch(self, now, tz):
        start, end = posted_window("all", now, tz)
        assert start.year == 1970 and end is None

    def test_yesterday(self, now, tz):
        start, end = posted_window("yesterday", now, tz)
        assert start == datetime(2026, 10, 15, 4, tzinfo=timezone.utc)
        assert end == datetime(2026, 10, 16, 4, tzinfo=timezone.utc)

    def test_rolling(self, now, tz):
        start, end = posted_window("30d", now, tz)
        assert start == datetime(2026, 9, 16, 15, tzinfo=timezone.utc)
        assert end is None

    def test_custom_without_date(self, now, tz):
        assert posted_window("custom", now, tz) is None

    def test_unknown_value(self, now, tz):
        assert posted_window("fortnight", now, tz) is None

    def test_in_window_is_end_exclusive(self, now, tz):
        window = posted_window("yesterday", now, tz)
        assert in_window(window[0], window)
        assert not in_window(window[1], window)


class TestHorizon:
    @pytest.mark.parametrize(
        "deadline,days",
        [("2026-10-16", 0), ("2026-10-21", 5), ("2026-10-14", -2), (None, None)],
    )
    def test_days_until(self, now, tz, deadline, days):
        assert days_until(deadline, now, tz) == days

    @pytest.mark.parametrize(
        "deadline,bucket",
        [
            ("2026-10-16", "today"),
            ("2026-10-18", "1_2_days"),
            ("2026-10-19", "3_5_days"),
            ("2026-10-21", "3_5_days"),
            ("2026-10-22", "beyond"),
            ("2026-10-15", None),
            (None, None),
        ],
    )
    def test_bucket(self, now, tz, deadline, bucket):
        assert horizon_bucket(deadline, now, tz) == bucket

    def test_this_week_runs_through_sunday(self, now, tz):
        assert expires_this_week("2026-10-16", now, tz)
        assert expires_this_week("2026-10-18", now, tz)
        assert not expires_this_week("2026-10-19", now, tz)
        assert not expires_this_week("2026-10-15", now, tz)
