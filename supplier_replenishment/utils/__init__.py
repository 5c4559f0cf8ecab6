from .date_utils import get_lookback_window, days_between, end_of_day
from .math_utils import clamp, to_float, to_int
from .validation import normalize_id, require_id, is_valid_window, validate_supplier

__all__ = [
    'get_lookback_window',
    'days_between',
    'end_of_day',
    'clamp',
    'to_float',
    'to_int',
    'normalize_id',
    'require_id',
    'is_valid_window',
    'validate_supplier'
]
