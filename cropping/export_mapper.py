"""
Display-space to source-pixel mapping for export.
"""
from core.exceptions import RasterizationError
from core.models import DisplayRect, ExportRegion, ImagePlacement
from utils.numeric import is_positive_finite, round_half_up


class ExportMapper:
    """
    Maps the crop rectangle back into the source image's pixel grid.

    No clamping happens here: a rectangle outside the image produces an
    out-of-bounds region, which the rasterizer rejects. Rounding origin and
    size separately can put a contained crop 1px past the far edge; the
    rasterizer trims that.
    """

    def __init__(self, placement: ImagePlacement):
        if not is_positive_finite(placement.scale):
            raise RasterizationError(f"Invalid image scale: {placement.scale}")
        self.placement = placement

    def to_source_region(self, rect: DisplayRect) -> ExportRegion:
        """
        Convert a display rectangle into integer source-pixel bounds.

        Args:
            rect: Crop rectangle in display coordinates

        Returns:
            ExportRegion in native pixels (rounded half-up)
        """
        scale = self.placement.scale
        return ExportRegion(
            source_x=round_half_up(max(0.0, (rect.left - self.placement.left) / scale)),
            source_y=round_half_up(max(0.0, (rect.top - self.placement.top) / scale)),
            source_width=round_half_up(rect.width / scale),
            source_height=round_half_up(rect.height / scale)
        )
