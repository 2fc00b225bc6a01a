"""
Unit conversion between inches and centimeters.

Wall sizes arrive in either unit; layout and pricing always work in
inches and bill in square feet.
"""
from typing import Any, Optional

from core.constants import (
    CENTIMETER,
    CM_PER_INCH,
    INCH,
    SQ_INCHES_PER_SQ_FT,
    UNIT_ALIASES,
)
from core.models import Dimensions
from utils.numeric import coerce_non_negative


def parse_unit(value: Any, default: str = INCH) -> str:
    """
    Normalize a unit name to 'in' or 'cm'.

    Args:
        value: Unit as typed or selected ("in", "Inches", "cm", ...)
        default: Unit returned for unknown values

    Returns:
        'in' or 'cm'
    """
    if isinstance(value, str):
        unit = UNIT_ALIASES.get(value.strip().lower())
        if unit:
            return unit
    return UNIT_ALIASES.get(default, INCH)


def to_inches(value: float, unit: str) -> float:
    """Convert a length to inches (no rounding)."""
    if parse_unit(unit) == CENTIMETER:
        return value / CM_PER_INCH
    return value


def to_centimeters(value: float, unit: str) -> float:
    """Convert a length to centimeters (no rounding)."""
    if parse_unit(unit) == INCH:
        return value * CM_PER_INCH
    return value


def area_in_square_feet(width_in: Optional[float], height_in: Optional[float]) -> float:
    """
    Wall area in square feet from inch dimensions.

    Negative or missing sides count as 0.

    Args:
        width_in: Width in inches
        height_in: Height in inches

    Returns:
        Area in square feet (>= 0)
    """
    width = coerce_non_negative(width_in)
    height = coerce_non_negative(height_in)
    return (width * height) / SQ_INCHES_PER_SQ_FT


def parse_dimensions(width: Any, height: Any, unit: Any = INCH, default_unit: str = INCH) -> Dimensions:
    """
    Build Dimensions from raw input field values.

    Invalid entries are clamped to 0 instead of raising.
    """
    return Dimensions(
        width=coerce_non_negative(width),
        height=coerce_non_negative(height),
        unit=parse_unit(unit, default=default_unit)
    )


def dimensions_in_inches(dims: Dimensions) -> tuple:
    """Get (width, height) of ``dims`` in inches."""
    return to_inches(dims.width, dims.unit), to_inches(dims.height, dims.unit)


def convert_dimensions(dims: Dimensions, unit: str) -> Dimensions:
    """Express the same physical size in another unit."""
    target = parse_unit(unit, default=dims.unit)
    if target == dims.unit:
        return Dimensions(dims.width, dims.height, dims.unit)
    if target == CENTIMETER:
        return Dimensions(
            to_centimeters(dims.width, dims.unit),
            to_centimeters(dims.height, dims.unit),
            CENTIMETER
        )
    return Dimensions(
        to_inches(dims.width, dims.unit),
        to_inches(dims.height, dims.unit),
        INCH
    )
