"""
Date utilities for schedule evaluation.

Provides weekday lookups and calendar arithmetic shared by the
recurrence matchers and the data loaders.
"""

from datetime import date
from typing import Any, Optional

# Weekday numbering used by the booking system: 0=Sunday .. 6=Saturday
WEEKDAY_NUMBERS = {
    'sunday': 0,
    'monday': 1,
    'tuesday': 2,
    'wednesday': 3,
    'thursday': 4,
    'friday': 5,
    'saturday': 6,
}

WEEKDAY_NAMES = {number: name for name, number in WEEKDAY_NUMBERS.items()}

EPOCH = date(1970, 1, 1)


def weekday_number(target_date: date) -> int:
    """
    Get the weekday of a date as 0=Sunday .. 6=Saturday.

    Args:
        target_date: Date to inspect

    Returns:
        int: Weekday number (Sunday-based)
    """
    return (target_date.weekday() + 1) % 7


def normalize_weekday(value: Any) -> Optional[int]:
    """
    Convert a weekday name or number to a Sunday-based weekday number.

    Names are matched case-insensitively. Numbers must be in 0..6.

    Args:
        value: Weekday name ("monday") or number (1)

    Returns:
        int or None: Weekday number, or None when the value is not a weekday
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 <= value <= 6 else None
    if isinstance(value, str):
        return WEEKDAY_NUMBERS.get(value.strip().lower())
    return None


def days_since_epoch(target_date: date) -> int:
    """
    Count whole days between 1970-01-01 and the given date.

    Args:
        target_date: Date to measure

    Returns:
        int: Number of days since the Unix epoch
    """
    return (target_date - EPOCH).days


def week_of_month_index(target_date: date) -> int:
    """
    Get the zero-based week-of-month bucket used for alternating schedules.

    The bucket is day-of-month divided by 7, so days 1-6 fall in bucket 0,
    days 7-13 in bucket 1, and so on.

    Args:
        target_date: Date to inspect

    Returns:
        int: Week-of-month bucket (0..4)
    """
    return target_date.day // 7


def parse_date_string(date_str: str) -> date:
    """
    Parse a date string in YYYY-MM-DD format.

    Args:
        date_str: Date string in YYYY-MM-DD format (e.g., "2025-01-15")

    Returns:
        date object

    Raises:
        ValueError: If the string is not a valid YYYY-MM-DD date

    Example:
        >>> parse_date_string("2025-01-15")
        date(2025, 1, 15)
    """
    parts = date_str.strip().split('-')
    if len(parts) != 3:
        raise ValueError(f"Invalid date '{date_str}', expected YYYY-MM-DD")
    return date(int(parts[0]), int(parts[1]), int(parts[2]))
