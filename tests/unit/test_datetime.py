# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for datetime utilities."""

from datetime import date, datetime, timedelta, timezone

from src.utils.datetime import ensure_utc, format_iso, previous_day, study_day, utc_now


class TestDatetimeUtils:
    """Tests for the UTC helpers."""

    def test_utc_now_is_aware(self) -> None:
        """Test that utc_now carries the UTC timezone."""
        assert utc_now().tzinfo == timezone.utc

    def test_ensure_utc_naive(self) -> None:
        """Test that naive datetimes are taken as UTC."""
        result = ensure_utc(datetime(2024, 5, 10, 12, 0))

        assert result == datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)

    def test_ensure_utc_none(self) -> None:
        """Test that None passes through."""
        assert ensure_utc(None) is None

    def test_study_day_uses_utc(self) -> None:
        """Test that a late evening west of UTC counts for the next UTC day."""
        eastern = timezone(timedelta(hours=-5))

        assert study_day(datetime(2024, 5, 10, 23, 30, tzinfo=eastern)) == date(2024, 5, 11)

    def test_previous_day_across_year(self) -> None:
        """Test the day before New Year's Day."""
        assert previous_day(date(2025, 1, 1)) == date(2024, 12, 31)

    def test_format_iso(self) -> None:
        """Test ISO formatting in UTC."""
        eastern = timezone(timedelta(hours=-5))

        assert format_iso(datetime(2024, 5, 10, 7, 0, tzinfo=eastern)) == (
            "2024-05-10T12:00:00+00:00"
        )
        assert format_iso(None) is None
