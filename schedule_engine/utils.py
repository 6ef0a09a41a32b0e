"""
Schedule display helpers.
"""

from typing import Any, Iterable, Optional

from common.date_utils import WEEKDAY_NAMES, normalize_weekday


def format_time(value: Optional[str]) -> str:
    """
    Convert an "HH:MM" time to 12-hour display.

    Examples:
        - "09:00" → "9:00 AM"
        - "15:30" → "3:30 PM"
        - "00:00" → "12:00 AM"
    """
    if not value:
        return 'N/A'
    try:
        h, m = value.split(':')[:2]
        hour_int = int(h)
        min_int = int(m)
    except ValueError:
        return value
    period = "AM" if hour_int < 12 else "PM"
    display_hour = hour_int % 12 or 12
    return f"{display_hour}:{min_int:02d} {period}"


def _day_label(value: Any) -> str:
    number = normalize_weekday(value)
    if number is None:
        return str(value)
    return WEEKDAY_NAMES[number].capitalize()[:3]


def describe_frequency(
    frequency: Optional[str],
    preferred_day: Optional[str] = None,
    days: Optional[Iterable[Any]] = None,
) -> str:
    """
    Convert a recurrence descriptor to human-readable format.

    Args:
        frequency: Service or check recurrence descriptor
        preferred_day: Weekday name used by weekly recurrences
        days: Explicit day list (overrides the descriptor when non-empty)

    Returns:
        Human-readable description of the recurrence

    Examples:
        - "daily" → "Daily"
        - "weekly", "friday" → "Weekly on Fridays"
        - "twice_weekly" → "Mondays and Thursdays"
        - days=["monday", "wednesday"] → "Mon, Wed"
    """
    day_list = list(days) if days else []
    if day_list:
        return ', '.join(_day_label(d) for d in day_list)

    if not frequency:
        return 'N/A'

    if frequency == 'weekly':
        number = normalize_weekday(preferred_day) if preferred_day else None
        day_name = WEEKDAY_NAMES[number if number is not None else 1].capitalize()
        return f"Weekly on {day_name}s"

    descriptions = {
        'daily': 'Daily',
        'daily_when_occupied': 'Daily when occupied',
        'twice_weekly': 'Mondays and Thursdays',
        'biweekly': 'Alternate Mondays',
        'monthly': 'Monthly on 1st',
        'specific_days': 'Specific days (none set)',
        '2x_daily': 'Twice daily',
        '3x_daily': 'Three times daily',
        'every_other_day': 'Every other day',
        'custom': 'Custom schedule',
    }
    return descriptions.get(frequency, f"Unknown: {frequency}")
