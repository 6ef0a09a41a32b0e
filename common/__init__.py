"""
Common helpers shared by the schedule engine.

Example Usage:
    from common import parse_date_string, weekday_number
    from common import convert_to_bool, convert_to_date

    day = parse_date_string('2025-06-02')
    weekday_number(day)  # 1 (Monday)
"""

__version__ = '1.0.0'

# Date utilities
from .date_utils import (
    WEEKDAY_NAMES,
    WEEKDAY_NUMBERS,
    days_since_epoch,
    normalize_weekday,
    parse_date_string,
    week_of_month_index,
    weekday_number,
)

# Data utilities
from .data_utils import (
    convert_to_bool,
    convert_to_date,
    convert_to_int,
    convert_to_list,
    convert_to_str,
    convert_to_str_list,
    convert_to_str_list_map,
)


__all__ = [
    # Version
    '__version__',

    # Date utilities
    'WEEKDAY_NAMES',
    'WEEKDAY_NUMBERS',
    'days_since_epoch',
    'normalize_weekday',
    'parse_date_string',
    'week_of_month_index',
    'weekday_number',

    # Data utilities
    'convert_to_bool',
    'convert_to_date',
    'convert_to_int',
    'convert_to_list',
    'convert_to_str',
    'convert_to_str_list',
    'convert_to_str_list_map',
]
