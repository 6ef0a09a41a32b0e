"""
Recurrence matchers.

Two independent predicates decide whether a recurrence descriptor falls on a
given date:

- ``matches_frequency`` for unit service schedules and property rules
  (occupancy-aware vocabulary)
- ``should_check_today`` for plant rooms and equipment (multi-times-per-day
  and every-other-day vocabulary)

Both are pure functions of their arguments. Unknown descriptors never match.
"""

from datetime import date
from typing import Any, Iterable, Optional

from common.date_utils import (
    days_since_epoch,
    normalize_weekday,
    week_of_month_index,
    weekday_number,
)

MONDAY = 1
THURSDAY = 4

SERVICE_FREQUENCIES = (
    'daily',
    'daily_when_occupied',
    'twice_weekly',
    'weekly',
    'biweekly',
    'monthly',
    'specific_days',
)

CHECK_FREQUENCIES = (
    'daily',
    '2x_daily',
    '3x_daily',
    'every_other_day',
    'weekly',
    'specific_days',
)


def _weekday_set(days: Iterable[Any]) -> set:
    return {n for n in (normalize_weekday(d) for d in days) if n is not None}


def is_biweekly_week(target_date: date) -> bool:
    """
    Alternating-week test used by biweekly recurrences.

    Uses (day-of-month // 7) parity, not ISO week parity, so the cadence
    drifts near month boundaries.
    """
    return week_of_month_index(target_date) % 2 == 0


def matches_frequency(
    frequency: Optional[str],
    target_date: date,
    preferred_day: Optional[str] = None,
    explicit_days: Optional[Iterable[Any]] = None,
    is_occupied: Optional[bool] = None,
) -> bool:
    """
    Check whether a service recurrence falls on the given date.

    Args:
        frequency: Service recurrence descriptor (daily, weekly, ...)
        target_date: Date being scheduled
        preferred_day: Weekday name used by ``weekly``
        explicit_days: Weekday list; when non-empty it alone decides the result
        is_occupied: Whether the unit has a booking covering the date

    Returns:
        True if a task is due on target_date
    """
    dow = weekday_number(target_date)

    explicit = list(explicit_days) if explicit_days else []
    if explicit:
        return dow in _weekday_set(explicit)

    if frequency == 'daily_when_occupied':
        return bool(is_occupied)
    if frequency == 'daily':
        return True
    if frequency == 'twice_weekly':
        return dow in (MONDAY, THURSDAY)
    if frequency == 'weekly':
        preferred = normalize_weekday(preferred_day) if preferred_day else None
        if preferred is not None:
            return dow == preferred
        return dow == MONDAY
    if frequency == 'biweekly':
        return dow == MONDAY and is_biweekly_week(target_date)
    if frequency == 'monthly':
        return target_date.day == 1

    # specific_days without a day list, and anything unrecognised
    return False


def should_check_today(
    frequency: Optional[str],
    target_date: date,
    check_days: Optional[Iterable[Any]] = None,
) -> bool:
    """
    Check whether a plant-room or equipment recurrence falls on the given date.

    Args:
        frequency: Check recurrence descriptor (daily, 2x_daily, ...)
        target_date: Date being scheduled
        check_days: Day list for ``specific_days``, numeric (0=Sunday) or named

    Returns:
        True if checks are due on target_date
    """
    if frequency in ('daily', '2x_daily', '3x_daily'):
        return True
    if frequency == 'every_other_day':
        return days_since_epoch(target_date) % 2 == 0
    if frequency == 'weekly':
        return weekday_number(target_date) == MONDAY
    if frequency == 'specific_days':
        days = list(check_days) if check_days else []
        if not days:
            return False
        return weekday_number(target_date) in _weekday_set(days)
    return False
