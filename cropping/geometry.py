"""
Crop rectangle geometry.

Keeps the crop rectangle locked to the wall's aspect ratio and inside the
displayed image. All coordinates are display-space floats.
"""
import logging
import math
from typing import Optional

from core.constants import (
    FALLBACK_ASPECT_RATIO,
    INITIAL_FILL_FRACTION,
    MAX_HEIGHT_FRACTION,
)
from core.exceptions import SessionStateError
from core.models import DisplayRect, ImagePlacement
from utils.numeric import is_positive_finite

logger = logging.getLogger(__name__)


def normalize_aspect_ratio(ratio) -> float:
    """Return ``ratio`` as a float, or 1.0 if it is zero, negative or not finite."""
    if is_positive_finite(ratio):
        return float(ratio)
    return FALLBACK_ASPECT_RATIO


def aspect_ratio_from_size(width: float, height: float) -> float:
    """Aspect ratio of a wall size; square when either side is missing."""
    if is_positive_finite(width) and is_positive_finite(height):
        return width / height
    return FALLBACK_ASPECT_RATIO


def clamp_axis(start: float, size: float, lower: float, upper: float) -> float:
    """
    Clamp a 1-D span [start, start + size] into [lower, upper].

    The near edge is clamped first, then the far edge. A span longer than
    the range therefore ends flush with ``upper`` and overhangs ``lower``.
    """
    if start < lower:
        start = lower
    if start + size > upper:
        start = upper - size
    return start


class CropGeometry:
    """
    Owns the crop rectangle for one cropping session.

    The rectangle is created by ``initialize`` once the image placement is
    known, then only resized by ``update_aspect_ratio`` and moved by
    ``on_drag``. Every mutation ends with the containment clamp.
    """

    def __init__(
        self,
        viewport_width: float,
        viewport_height: float,
        initial_fill: float = INITIAL_FILL_FRACTION,
        max_height_fraction: float = MAX_HEIGHT_FRACTION
    ):
        """
        Initialize crop geometry for a display surface.

        Args:
            viewport_width: Display surface width
            viewport_height: Display surface height
            initial_fill: Fraction of the image box the first rectangle fills
            max_height_fraction: Height cap, as a fraction of the surface height
        """
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self.initial_fill = initial_fill
        self.max_height_fraction = max_height_fraction

        self.placement: Optional[ImagePlacement] = None
        self.rect: Optional[DisplayRect] = None
        self.aspect_ratio: Optional[float] = None

    @property
    def is_initialized(self) -> bool:
        return self.rect is not None

    def initialize(self, placement: ImagePlacement, target_ratio: float) -> DisplayRect:
        """
        Create the crop rectangle centered on the displayed image.

        Args:
            placement: Where the image is drawn on the surface
            target_ratio: Wall width / height

        Returns:
            The new crop rectangle
        """
        ratio = normalize_aspect_ratio(target_ratio)
        bounds = placement.bounds

        width = bounds.width * self.initial_fill
        height = width / ratio
        if height > bounds.height * self.initial_fill:
            height = bounds.height * self.initial_fill
            width = height * ratio

        center_x, center_y = bounds.center
        self.placement = placement
        self.aspect_ratio = ratio
        self.rect = DisplayRect(center_x - width / 2, center_y - height / 2, width, height)
        self._clamp()

        logger.debug("Crop initialized at %s (ratio %.4f)", self.rect, ratio)
        return self.rect

    def update_aspect_ratio(self, new_ratio: float) -> DisplayRect:
        """
        Resize the rectangle around its center to a new aspect ratio.

        The width is kept and the height derived; when the height would pass
        the surface height cap it is capped and the width derived instead.
        A result that still does not fit the image is scaled down to fit.
        Re-applying the current ratio leaves the rectangle untouched.

        Args:
            new_ratio: Wall width / height

        Returns:
            The updated crop rectangle
        """
        self._require_initialized()
        ratio = normalize_aspect_ratio(new_ratio)
        if ratio == self.aspect_ratio:
            return self.rect

        center_x, center_y = self.rect.center
        width = self.rect.width
        height = width / ratio

        max_height = self.viewport_height * self.max_height_fraction
        if height > max_height:
            height = max_height
            width = height * ratio

        bounds = self.placement.bounds
        shrink = min(1.0, bounds.width / width, bounds.height / height)
        if shrink < 1.0:
            width *= shrink
            height *= shrink

        self.aspect_ratio = ratio
        self.rect = DisplayRect(center_x - width / 2, center_y - height / 2, width, height)
        self._clamp()

        logger.debug("Crop resized to %s (ratio %.4f)", self.rect, ratio)
        return self.rect

    def on_drag(self, proposed_left: float, proposed_top: float) -> DisplayRect:
        """
        Move the rectangle, keeping it inside the image.

        Each axis is clamped independently; width and height never change.
        Non-finite positions keep the current coordinate.

        Args:
            proposed_left: Requested left edge
            proposed_top: Requested top edge

        Returns:
            The moved crop rectangle
        """
        self._require_initialized()
        if not math.isfinite(proposed_left):
            proposed_left = self.rect.left
        if not math.isfinite(proposed_top):
            proposed_top = self.rect.top

        bounds = self.placement.bounds
        left = clamp_axis(proposed_left, self.rect.width, bounds.left, bounds.right)
        top = clamp_axis(proposed_top, self.rect.height, bounds.top, bounds.bottom)
        self.rect = DisplayRect(left, top, self.rect.width, self.rect.height)
        return self.rect

    def is_contained(self) -> bool:
        """Check whether the rectangle currently lies inside the image."""
        return self.is_initialized and self.placement.bounds.contains(self.rect)

    def _clamp(self):
        self.on_drag(self.rect.left, self.rect.top)

    def _require_initialized(self):
        if not self.is_initialized:
            raise SessionStateError("Crop geometry has not been initialized")
