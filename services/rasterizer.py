"""
Rasterizer - Cuts the export region out of the source image.
"""
import logging

from PIL import Image

from core.constants import DEFAULT_JPEG_QUALITY, EXPORT_EDGE_TOLERANCE_PX
from core.exceptions import RasterizationError
from core.models import ExportRegion
from utils.image_utils import encode_jpeg

logger = logging.getLogger(__name__)


def validate_region(
    region: ExportRegion,
    image_width: int,
    image_height: int,
    tolerance: int = EXPORT_EDGE_TOLERANCE_PX
) -> ExportRegion:
    """
    Check that a region is non-empty and inside the image.

    A far edge that overshoots the image by at most ``tolerance`` pixels is
    trimmed to the edge; this is the rounding slack of a crop that sits
    flush with the right or bottom of the image.

    Args:
        region: Mapped export region
        image_width: Source image width in pixels
        image_height: Source image height in pixels
        tolerance: Overshoot in pixels trimmed instead of rejected

    Returns:
        The region, trimmed to the image when it overshot within tolerance

    Raises:
        RasterizationError: If the region is empty or out of bounds
    """
    if region.source_width <= 0 or region.source_height <= 0:
        raise RasterizationError(
            f"Export region is empty ({region.source_width}x{region.source_height})"
        )
    if (
        region.source_x < 0
        or region.source_y < 0
        or region.right > image_width + tolerance
        or region.bottom > image_height + tolerance
    ):
        raise RasterizationError(
            f"Export region {region.as_box()} lies outside the "
            f"{image_width}x{image_height} source image"
        )

    width = min(region.source_width, image_width - region.source_x)
    height = min(region.source_height, image_height - region.source_y)
    if width <= 0 or height <= 0:
        raise RasterizationError(
            f"Export region {region.as_box()} starts at the edge of the "
            f"{image_width}x{image_height} source image"
        )
    if (width, height) != (region.source_width, region.source_height):
        logger.debug("Trimmed export region %s to %dx%d", region.as_box(), width, height)
        return ExportRegion(region.source_x, region.source_y, width, height)
    return region


class PilRasterizer:
    """Crops with Pillow and encodes the result as JPEG."""

    content_type = 'image/jpeg'

    def __init__(self, jpeg_quality: int = DEFAULT_JPEG_QUALITY):
        self.jpeg_quality = jpeg_quality

    def crop_to_buffer(self, source_image: Image.Image, region: ExportRegion) -> bytes:
        """
        Crop ``region`` out of the source image.

        Args:
            source_image: Full-resolution PIL image
            region: Bounds in the image's native pixels

        Returns:
            JPEG-encoded bytes of the cropped area

        Raises:
            RasterizationError: If the region lies outside the image by more
                than the rounding tolerance
        """
        width, height = source_image.size
        region = validate_region(region, width, height)

        try:
            crop = source_image.crop(region.as_box())
            data = encode_jpeg(crop, quality=self.jpeg_quality)
        except (OSError, ValueError) as e:
            raise RasterizationError(f"Could not encode crop: {e}") from e

        logger.debug("Rasterized %s into %d bytes", region.as_box(), len(data))
        return data
