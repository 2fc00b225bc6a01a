"""
Constants and configuration values for the wall cropper.
"""

# Length units
INCH = 'in'
CENTIMETER = 'cm'
CM_PER_INCH = 2.54
SQ_INCHES_PER_SQ_FT = 144.0

UNIT_ALIASES = {
    'in': INCH,
    'inch': INCH,
    'inches': INCH,
    '"': INCH,
    'cm': CENTIMETER,
    'centimeter': CENTIMETER,
    'centimeters': CENTIMETER,
    'centimetre': CENTIMETER,
    'centimetres': CENTIMETER,
}

# Default wall size per unit (width, height)
DEFAULT_DIMENSIONS = {
    INCH: (96.0, 96.0),
    CENTIMETER: (244.0, 244.0),
}

# Crop rectangle sizing, as fractions of the available space
INITIAL_FILL_FRACTION = 0.85
MAX_HEIGHT_FRACTION = 0.9

# Ratio used when the requested one is unusable (zero, NaN, inf)
FALLBACK_ASPECT_RATIO = 1.0

# Export
DEFAULT_JPEG_QUALITY = 92
EXPORT_FILENAME = 'preview-crop.jpg'
EXPORT_CONTENT_TYPE = 'image/jpeg'
# Far-edge overshoot left by rounding origin and size separately
EXPORT_EDGE_TOLERANCE_PX = 1

# Overlay styles for the render surface
CROP_RECT_STYLE = {
    'stroke': '#00A3FF',
    'stroke_width': 2,
}

PANEL_LINE_STYLE = {
    'stroke': '#FFFFFF',
    'stroke_width': 2,
}

PANEL_LINE_SHADOW_STYLE = {
    'stroke': '#000000',
    'stroke_width': 1,
}

# Dim everything outside the crop (rgba, 35% black)
OUTSIDE_DIM_STYLE = {
    'fill': (0, 0, 0, 89),
}

PREVIEW_BACKGROUND = (64, 64, 64)
