"""
Unit tests for settlement-day helpers.

Tests cover:
- Previous settlement day selection
- Fixed profit recognition offset
"""

from datetime import UTC, date, datetime, timedelta, timezone

from app.utils.datetime_utils import (
    previous_settlement_day,
    profit_recognition_time,
    utc_now,
    utc_today,
)


class TestPreviousSettlementDay:
    """Test which day a run settles."""

    def test_scheduled_run(self):
        """01:00 UTC run settles the previous day."""
        now = datetime(2026, 3, 11, 1, 0, tzinfo=UTC)

        assert previous_settlement_day(now) == date(2026, 3, 10)

    def test_late_run_same_day(self):
        """A run late in the day still settles the previous day."""
        now = datetime(2026, 3, 11, 23, 59, tzinfo=UTC)

        assert previous_settlement_day(now) == date(2026, 3, 10)

    def test_month_boundary(self):
        """First of month settles the last day of the previous month."""
        now = datetime(2026, 3, 1, 1, 0, tzinfo=UTC)

        assert previous_settlement_day(now) == date(2026, 2, 28)

    def test_non_utc_input_normalized(self):
        """Offsets are converted to UTC before picking the day."""
        tz = timezone(timedelta(hours=3))
        now = datetime(2026, 3, 11, 2, 0, tzinfo=tz)  # 23:00 UTC on the 10th

        assert previous_settlement_day(now) == date(2026, 3, 9)

    def test_defaults_to_now(self):
        """Without argument the current UTC time is used."""
        assert previous_settlement_day() == utc_today() - timedelta(days=1)


class TestProfitRecognitionTime:
    """Test the activation offset contract."""

    def test_next_day_at_one(self):
        """Recognition is activation day + 1 at 01:00 UTC."""
        assert profit_recognition_time(date(2026, 3, 10)) == datetime(
            2026, 3, 11, 1, 0, tzinfo=UTC
        )

    def test_year_boundary(self):
        """Offset crosses year boundaries."""
        assert profit_recognition_time(date(2026, 12, 31)) == datetime(
            2027, 1, 1, 1, 0, tzinfo=UTC
        )

    def test_custom_hour(self):
        """Recognition hour is configurable."""
        assert profit_recognition_time(date(2026, 3, 10), hour=3).hour == 3

    def test_timezone_aware(self):
        """Result is timezone-aware UTC."""
        assert profit_recognition_time(date(2026, 3, 10)).tzinfo == UTC


class TestUtcNow:
    """Test UTC clock helpers."""

    def test_utc_now_is_aware(self):
        """utc_now returns an aware datetime."""
        assert utc_now().tzinfo is not None
