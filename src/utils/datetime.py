# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities.

Timestamps (solved_at, recent gains, event times) are timezone-aware
UTC datetimes. Calendar days (streak days, XP history days) are UTC
dates: a learner studying at 23:30 in UTC-5 counts for the next UTC day.

Usage:
------
    from src.utils.datetime import previous_day, study_day, utc_now

    now = utc_now()
    today = study_day(now)
    extends_streak = last_study_date == previous_day(today)
"""

from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize a datetime to timezone-aware UTC.

    Naive values are taken to be UTC already; aware values are converted.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def study_day(moment: datetime) -> date:
    """UTC calendar day a moment falls on."""
    return ensure_utc(moment).date()


def previous_day(day: date) -> date:
    """Calendar day before ``day``."""
    return day - timedelta(days=1)


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as an ISO 8601 UTC string, or None."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()
