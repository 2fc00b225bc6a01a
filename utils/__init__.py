"""Utilities package - Helper functions for units, numbers and images."""

from .numeric import (
    round_half_up,
    is_positive_finite,
    coerce_non_negative
)

from .units import (
    parse_unit,
    to_inches,
    to_centimeters,
    area_in_square_feet,
    parse_dimensions,
    dimensions_in_inches,
    convert_dimensions
)

from .image_utils import (
    prepare_image,
    decode_image_bytes,
    open_image,
    to_rgb,
    encode_jpeg,
    get_image_dimensions
)

__all__ = [
    # Numeric utils
    'round_half_up',
    'is_positive_finite',
    'coerce_non_negative',

    # Unit utils
    'parse_unit',
    'to_inches',
    'to_centimeters',
    'area_in_square_feet',
    'parse_dimensions',
    'dimensions_in_inches',
    'convert_dimensions',

    # Image utils
    'prepare_image',
    'decode_image_bytes',
    'open_image',
    'to_rgb',
    'encode_jpeg',
    'get_image_dimensions'
]
