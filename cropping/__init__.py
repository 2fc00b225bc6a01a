"""Cropping package - Crop geometry, panel layout, pricing and export mapping."""

from .geometry import (
    CropGeometry,
    normalize_aspect_ratio,
    aspect_ratio_from_size,
    clamp_axis
)
from .panels import PanelLayoutPlanner, panel_count, plan_panels
from .pricing import RateTable, quote
from .export_mapper import ExportMapper
from .overlay import draw_crop_overlay, panel_line_segments, outside_bands

__all__ = [
    'CropGeometry',
    'normalize_aspect_ratio',
    'aspect_ratio_from_size',
    'clamp_axis',
    'PanelLayoutPlanner',
    'panel_count',
    'plan_panels',
    'RateTable',
    'quote',
    'ExportMapper',
    'draw_crop_overlay',
    'panel_line_segments',
    'outside_bands'
]
