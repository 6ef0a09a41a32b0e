"""
Data conversion utilities.

Provides type conversion functions for raw records handed over by the
property-management data layer (database rows, JSON payloads, YAML
snapshots).
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

import dateutil.parser


def convert_to_bool(value: Any) -> bool:
    """
    Read a flag column (is_active, maintenance_scheduled, on_arrival ...).

    Form and YAML payloads store flags as "true"/"yes"/"on"/"1" strings
    next to real booleans; anything missing counts as off.

    Args:
        value: Raw flag value

    Returns:
        bool: Parsed flag (False for None/empty)
    """
    if value is None or value == "":
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def convert_to_int(value: Any) -> Optional[int]:
    """
    Read a numeric column such as selection_count or rule priority.

    Numeric strings and floats are truncated. Booleans are rejected so a
    flag column never reads as a count of 1.

    Args:
        value: Raw numeric value

    Returns:
        int or None: Parsed integer, or None when the value is not numeric
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return None


def convert_to_date(value: Any) -> Optional[date]:
    """
    Convert value to Python date.

    Handles multiple input types:
    - None/empty string: returns None
    - date or datetime object: returns the calendar date
    - string: parses using dateutil.parser

    Args:
        value: Date string, date/datetime object, or None

    Returns:
        date or None: Parsed date or None if parsing fails
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return dateutil.parser.parse(str(value)).date()
    except (ValueError, TypeError, OverflowError):
        return None


def convert_to_str(value: Any) -> Optional[str]:
    """
    Convert value to a stripped string, mapping None/empty to None.

    Args:
        value: Value to convert

    Returns:
        str or None
    """
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def convert_to_list(value: Any) -> List[Any]:
    """
    Normalize a list-like value.

    - None/empty: []
    - list/tuple/set: list copy with None entries removed
    - dict with an "ids" key: the ids list (legacy target_units shape)
    - scalar: single-item list

    Args:
        value: Value to normalize

    Returns:
        list
    """
    if value is None or value == "":
        return []
    if isinstance(value, dict):
        return convert_to_list(value.get('ids'))
    if isinstance(value, (list, tuple, set, frozenset)):
        return [item for item in value if item is not None]
    return [value]


def convert_to_str_list(value: Any) -> List[str]:
    """
    Normalize a list-like value into a list of non-empty strings.

    Args:
        value: Value to normalize (see convert_to_list)

    Returns:
        list of str
    """
    result = []
    for item in convert_to_list(value):
        text = convert_to_str(item)
        if text is not None:
            result.append(text)
    return result


def convert_to_str_list_map(value: Any) -> Dict[str, List[str]]:
    """
    Normalize a mapping of bucket -> list of strings.

    Used for service-kind-per-recurrence maps such as
    ``{"daily": ["test_only"], "weekly": ["full_service"]}``.
    Non-mapping input yields an empty dict.

    Args:
        value: Mapping to normalize

    Returns:
        dict of str -> list of str
    """
    if not isinstance(value, dict):
        return {}
    return {str(key): convert_to_str_list(items) for key, items in value.items()}
