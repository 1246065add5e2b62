"""
Datetime utilities.

Provides timezone-aware datetime functions for the business calendar.
"""

from datetime import UTC, date, datetime, timedelta, timezone

from placement_rewards.config.settings import settings


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def business_tz() -> timezone:
    """Fixed-offset timezone of the platform business day."""
    return timezone(timedelta(hours=settings.business_utc_offset_hours))


def business_now() -> datetime:
    """Current time in the business timezone."""
    return utc_now().astimezone(business_tz())


def business_day_window(day: date) -> tuple[datetime, datetime]:
    """
    Get UTC bounds of a business day.

    Args:
        day: Calendar date in the business timezone

    Returns:
        Tuple (start, end) as UTC datetimes, end exclusive
    """
    start = datetime(day.year, day.month, day.day, tzinfo=business_tz())
    end = start + timedelta(days=1)
    return start.astimezone(UTC), end.astimezone(UTC)


def days_ago_window(days: int, now: datetime | None = None) -> tuple[datetime, datetime]:
    """
    Get UTC bounds of the business day ``days`` before today.

    Args:
        days: 1 for yesterday, 2 for the day before yesterday
        now: Reference time, defaults to current time

    Returns:
        Tuple (start, end) as UTC datetimes, end exclusive
    """
    reference = (now or utc_now()).astimezone(business_tz())
    return business_day_window(reference.date() - timedelta(days=days))
