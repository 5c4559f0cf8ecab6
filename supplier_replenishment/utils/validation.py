from datetime import datetime
from typing import Any, Dict

from supplier_replenishment.exceptions import InvalidInputError
from supplier_replenishment.records import SupplierRecord
from supplier_replenishment.utils.math_utils import to_int

def normalize_id(value: Any) -> int:
    """Normalize an id to a positive int, or 0 when it is not usable."""
    result = to_int(value, 0)
    return result if result > 0 else 0

def require_id(value: Any, name: str = 'id') -> int:
    """Normalize an id and raise if it is not a positive integer.

    Raises:
        InvalidInputError if the value is not a positive id
    """
    result = normalize_id(value)
    if not result:
        raise InvalidInputError(f"Invalid {name}: {value!r}", details={name: value})
    return result

def is_valid_window(from_ts: datetime, to_ts: datetime) -> bool:
    """Check that both bounds are set and the window is not empty."""
    return from_ts is not None and to_ts is not None and from_ts < to_ts

def validate_supplier(supplier: SupplierRecord) -> Dict[str, str]:
    """Validate a supplier record.

    Args:
        supplier: Supplier to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not supplier.id or supplier.id <= 0:
        errors['id'] = 'Supplier ID is required'

    if supplier.lead_time_weeks < 0:
        errors['lead_time_weeks'] = 'Lead time cannot be negative'

    if supplier.holiday_extra_days < 0:
        errors['holiday_extra_days'] = 'Holiday extra days cannot be negative'

    if supplier.buffer_months_override is not None and supplier.buffer_months_override < 0:
        errors['buffer_months_override'] = 'Buffer override cannot be negative'

    return errors
