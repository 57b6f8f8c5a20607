"""Calendar bucket keys for weekly and monthly aggregation.

Week keys are the ISO date (YYYY-MM-DD) of the Monday that starts the week.
Month keys are YYYY-MM.
"""

from datetime import date, datetime, timedelta
from typing import Any

from .exceptions import InvalidDateError

DATE_FORMAT = '%Y-%m-%d'
MONTH_FORMAT = '%Y-%m'


def parse_date(value: Any) -> date:
    """
    Coerce a date-like value to a calendar date.

    Args:
        value: date, datetime or 'YYYY-MM-DD' string

    Returns:
        Calendar date (time of day dropped)

    Raises:
        InvalidDateError: If the value is not a valid date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateError(f"Invalid date: {value!r}. Use YYYY-MM-DD")

    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise InvalidDateError(f"Invalid date: {value!r}. Use YYYY-MM-DD")


def parse_month_key(month_key: Any) -> date:
    """
    Parse a 'YYYY-MM' month key.

    Returns:
        First day of the month

    Raises:
        InvalidDateError: If the key is malformed
    """
    if not isinstance(month_key, str):
        raise InvalidDateError(f"Invalid month key: {month_key!r}. Use YYYY-MM")

    try:
        return datetime.strptime(month_key.strip(), MONTH_FORMAT).date()
    except ValueError:
        raise InvalidDateError(f"Invalid month key: {month_key!r}. Use YYYY-MM")


def date_key(value: Any) -> str:
    """Return the canonical YYYY-MM-DD key for a date-like value."""
    return parse_date(value).strftime(DATE_FORMAT)


def today_key() -> str:
    return date.today().strftime(DATE_FORMAT)


def start_of_week(value: Any) -> str:
    """
    Get the Monday on or before the given date.

    A Sunday belongs to the week that started six days earlier.
    """
    day = parse_date(value)
    monday = day - timedelta(days=day.weekday())
    return monday.strftime(DATE_FORMAT)


def end_of_week(week_key: Any) -> str:
    """Last day (Sunday) of the week starting at week_key."""
    return (parse_date(week_key) + timedelta(days=6)).strftime(DATE_FORMAT)


def previous_week(week_key: Any) -> str:
    """Week key exactly 7 days before week_key."""
    return (parse_date(week_key) - timedelta(days=7)).strftime(DATE_FORMAT)


def start_of_month(value: Any) -> str:
    """Month key (YYYY-MM) of the given date."""
    return parse_date(value).strftime(MONTH_FORMAT)


def previous_month(month_key: str) -> str:
    """Month key immediately before month_key, rolling over year boundaries."""
    first_day = parse_month_key(month_key)
    if first_day.month == 1:
        return f"{first_day.year - 1}-12"
    return f"{first_day.year}-{first_day.month - 1:02d}"
