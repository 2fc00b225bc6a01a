"""Core package - Domain models, constants and errors."""

from .models import (
    Dimensions,
    DisplayRect,
    ImagePlacement,
    PriceQuote,
    ExportRegion,
    LoadedImage,
    ExportResult,
    SessionSnapshot
)
from .constants import (
    INCH,
    CENTIMETER,
    CM_PER_INCH,
    SQ_INCHES_PER_SQ_FT,
    DEFAULT_DIMENSIONS,
    INITIAL_FILL_FRACTION,
    MAX_HEIGHT_FRACTION
)
from .exceptions import (
    CropperError,
    ImageLoadError,
    RasterizationError,
    UploadError,
    SessionStateError,
    ExportInProgressError
)

__all__ = [
    'Dimensions',
    'DisplayRect',
    'ImagePlacement',
    'PriceQuote',
    'ExportRegion',
    'LoadedImage',
    'ExportResult',
    'SessionSnapshot',
    'INCH',
    'CENTIMETER',
    'CM_PER_INCH',
    'SQ_INCHES_PER_SQ_FT',
    'DEFAULT_DIMENSIONS',
    'INITIAL_FILL_FRACTION',
    'MAX_HEIGHT_FRACTION',
    'CropperError',
    'ImageLoadError',
    'RasterizationError',
    'UploadError',
    'SessionStateError',
    'ExportInProgressError'
]
