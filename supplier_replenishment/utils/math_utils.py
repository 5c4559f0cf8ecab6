# supplier_replenishment/utils/math_utils.py
import math
from typing import Any, Optional

def clamp(value: float, minimum: float, maximum: Optional[float] = None) -> float:
    """Clamp a value to [minimum, maximum].

    Args:
        value: Value to clamp
        minimum: Lower bound
        maximum: Upper bound (None for no upper bound)

    Returns:
        Clamped value
    """
    if value < minimum:
        return minimum
    if maximum is not None and value > maximum:
        return maximum
    return value

def to_float(value: Any, default: float = 0.0) -> float:
    """Convert a loosely typed value (meta strings, NULLs) to a finite float."""
    if value is None or value == '':
        return default

    try:
        result = float(value)
    except (TypeError, ValueError):
        return default

    if not math.isfinite(result):
        return default

    return result

def to_int(value: Any, default: int = 0) -> int:
    """Convert a loosely typed value to an int, truncating floats."""
    return int(to_float(value, float(default)))
