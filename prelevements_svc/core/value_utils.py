"""
Numeric value coercion shared by the aggregation and charting transforms.

Missing or non-numeric values are represented by None, never by zero:
zero is a valid reading ("no withdrawal recorded").
"""
import math
import numbers
from typing import Any, Optional


def coerce_numeric_value(value: Any) -> Optional[float]:
    """
    Convert a raw value to a finite float when possible, otherwise None.

    Accepts:
    - int/float (finite only; booleans are rejected)
    - Numeric strings, with whitespace thousand separators and decimal commas

    Examples:
        >>> coerce_numeric_value("1 234,5")
        1234.5
        >>> coerce_numeric_value(0)
        0.0
        >>> coerce_numeric_value("abc") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, numbers.Real):
        number = float(value)
        return number if math.isfinite(number) else None

    if not isinstance(value, str):
        return None

    cleaned = ''.join(value.split()).replace(',', '.')
    if not cleaned or '_' in cleaned:
        return None

    try:
        number = float(cleaned)
    except ValueError:
        return None

    return number if math.isfinite(number) else None
