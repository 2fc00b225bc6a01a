"""
Numeric helpers shared by the geometry, layout and pricing code.

Handles rounding and the lenient parsing used for live-typed inputs.
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Works on the exact binary value of the float, so 0.49999999999999994
    rounds to 0 while 2.5 rounds to 3.

    Args:
        value: Finite number to round

    Returns:
        Rounded integer
    """
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def is_positive_finite(value: Any) -> bool:
    """Check for a real number that is > 0 and not inf/NaN."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(number) and number > 0


def coerce_non_negative(value: Any) -> float:
    """
    Parse user input into a non-negative float.

    Empty, non-numeric, non-finite and negative values all become 0.0;
    the input is typed live so a half-finished value must not raise.

    Args:
        value: Raw input (str, int, float or None)

    Returns:
        Parsed value, or 0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number
