"""
Crop overlay drawing.

Turns the current crop rectangle and panel split fractions into drawing
calls on a render surface. Layout stays in ``panels``; this module only
applies the fractions to the rectangle's current geometry.
"""
from typing import List, Optional, Sequence, Tuple

from core.constants import (
    CROP_RECT_STYLE,
    OUTSIDE_DIM_STYLE,
    PANEL_LINE_SHADOW_STYLE,
    PANEL_LINE_STYLE,
)
from core.models import DisplayRect

Point = Tuple[float, float]


def panel_line_segments(rect: DisplayRect, splits: Sequence[float]) -> List[Tuple[Point, Point]]:
    """
    Vertical cut lines across the crop rectangle.

    Args:
        rect: Crop rectangle in display coordinates
        splits: Fractions of the rectangle width, left to right

    Returns:
        List of (top point, bottom point) pairs
    """
    segments = []
    for fraction in splits:
        x = rect.left + rect.width * fraction
        segments.append(((x, rect.top), (x, rect.bottom)))
    return segments


def outside_bands(rect: DisplayRect, viewport_width: float, viewport_height: float) -> List[DisplayRect]:
    """
    Rectangles covering the surface outside the crop (top, bottom, left, right).

    Empty bands are left out.
    """
    bands = [
        DisplayRect(0, 0, viewport_width, rect.top),
        DisplayRect(0, rect.bottom, viewport_width, viewport_height - rect.bottom),
        DisplayRect(0, rect.top, rect.left, rect.height),
        DisplayRect(rect.right, rect.top, viewport_width - rect.right, rect.height),
    ]
    return [band for band in bands if band.width > 0 and band.height > 0]


def draw_crop_overlay(surface, rect: Optional[DisplayRect], splits: Sequence[float] = ()):
    """
    Draw the dimmed surround, the crop outline and the panel lines.

    Args:
        surface: RenderSurface to draw on
        rect: Crop rectangle, or None when there is nothing to draw
        splits: Panel split fractions
    """
    if rect is None:
        return

    viewport_width, viewport_height = surface.get_viewport_size()
    for band in outside_bands(rect, viewport_width, viewport_height):
        surface.draw_rectangle(band, OUTSIDE_DIM_STYLE)

    # Shadow first so the white line sits on top of it
    for top, bottom in panel_line_segments(rect, splits):
        surface.draw_line(top, bottom, PANEL_LINE_SHADOW_STYLE)
        surface.draw_line(top, bottom, PANEL_LINE_STYLE)

    surface.draw_rectangle(rect, CROP_RECT_STYLE)
