"""
Datetime utilities.

Provides timezone-aware datetime functions and settlement-day helpers.
"""

from datetime import UTC, date, datetime, time, timedelta


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def utc_today() -> date:
    """Get current UTC calendar date."""
    return utc_now().date()


def previous_settlement_day(now: datetime | None = None) -> date:
    """
    Get the calendar day settled by a run started at `now`.

    The daily pass runs after midnight UTC and settles the day before.

    Args:
        now: Run start time (defaults to utc_now())

    Returns:
        Settlement day D
    """
    now = now or utc_now()
    return (now.astimezone(UTC) - timedelta(days=1)).date()


def profit_recognition_time(activation_date: date, hour: int = 1) -> datetime:
    """
    Get profit_processed_at for an activation day.

    Always activation_date + 1 day at `hour`:00 UTC, independent of when
    the batch actually executes.

    Args:
        activation_date: Calendar day of the activation
        hour: UTC hour of recognition

    Returns:
        Timezone-aware recognition timestamp
    """
    return datetime.combine(
        activation_date + timedelta(days=1), time(hour=hour), tzinfo=UTC
    )
