"""
Calendar utilities for the research feed.

Idea timestamps are ISO strings written by several engines, some with an
offset and some without. Everything here turns them into timezone-aware
datetimes (naive values are read as UTC) and answers calendar questions in
the feed's configured time zone.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Optional, Tuple

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Window bounds are [start, end); None means unbounded
Window = Tuple[datetime, Optional[datetime]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(dt: datetime) -> datetime:
    """Read naive datetimes as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


@lru_cache(maxsize=8192)
def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp; returns None when absent or unparseable."""
    if not value:
        return None
    try:
        return ensure_aware(datetime.fromisoformat(value.strip()))
    except ValueError:
        return None


def to_local_date(value: Optional[str], tz: tzinfo) -> Optional[date]:
    """
    Calendar date of an ISO value in ``tz``.

    Date-only strings (``2026-10-20``) are taken as that calendar date as-is;
    full timestamps are converted to ``tz`` first.
    """
    if not value:
        return None
    value = value.strip()
    if len(value) == 10:
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed.astimezone(tz).date()


def start_of_day(day: date, tz: tzinfo) -> datetime:
    """Local midnight of ``day`` in ``tz``."""
    return datetime.combine(day, time.min, tzinfo=tz)


def local_today(now: datetime, tz: tzinfo) -> date:
    return ensure_aware(now).astimezone(tz).date()


def posted_window(
    date_range: str, now: datetime, tz: tzinfo, custom_date: Optional[date] = None
) -> Optional[Window]:
    """
    Resolve a posted-date selection into a ``[start, end)`` window.

    Args:
        date_range: One of all, today, yesterday, 3d, 7d, 30d, custom
        now: Current wall-clock time
        tz: Time zone defining calendar days
        custom_date: Day selected for ``custom``

    Returns:
        The window, or None when the selection cannot be resolved (unknown
        value, or ``custom`` without a date) and should match everything
    """
    now = ensure_aware(now)
    today = local_today(now, tz)
    midnight = start_of_day(today, tz)

    if date_range == "all":
        return EPOCH, None
    if date_range == "today":
        return midnight, None
    if date_range == "yesterday":
        return start_of_day(today - timedelta(days=1), tz), midnight
    if date_range in ("3d", "7d", "30d"):
        return now - timedelta(days=int(date_range[:-1])), None
    if date_range == "custom" and custom_date is not None:
        return start_of_day(custom_date, tz), start_of_day(custom_date + timedelta(days=1), tz)
    return None


def in_window(moment: datetime, window: Window) -> bool:
    start, end = window
    if moment < start:
        return False
    return end is None or moment < end


def days_until(deadline: Optional[str], now: datetime, tz: tzinfo) -> Optional[int]:
    """Whole calendar days from today to the deadline's date (negative once past)."""
    expiry = to_local_date(deadline, tz)
    if expiry is None:
        return None
    return (expiry - local_today(now, tz)).days


def horizon_bucket(deadline: Optional[str], now: datetime, tz: tzinfo) -> Optional[str]:
    """
    Classify time-to-expiry.

    Returns today, 1_2_days, 3_5_days or beyond; None for ideas without a
    readable deadline or whose deadline has passed.
    """
    days = days_until(deadline, now, tz)
    if days is None or days < 0:
        return None
    if days == 0:
        return "today"
    if days <= 2:
        return "1_2_days"
    if days <= 5:
        return "3_5_days"
    return "beyond"


def expires_this_week(deadline: Optional[str], now: datetime, tz: tzinfo) -> bool:
    """True when the deadline falls between today and the coming Sunday."""
    days = days_until(deadline, now, tz)
    if days is None or days < 0:
        return False
    days_left_in_week = 6 - local_today(now, tz).weekday()
    return days <= days_left_in_week
