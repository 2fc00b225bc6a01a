"""
Core domain models for the wall cropper.

These are plain data structures; the cropping package owns the behavior.
Display-space values are floats, source-pixel values are ints.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from core.constants import INCH


@dataclass
class Dimensions:
    """Physical wall size as entered by the user."""
    width: float = 0.0
    height: float = 0.0
    unit: str = INCH

    @property
    def is_empty(self) -> bool:
        """True when either side is zero (nothing to crop yet)."""
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'width': self.width,
            'height': self.height,
            'unit': self.unit
        }


@dataclass
class DisplayRect:
    """Axis-aligned rectangle in display (canvas) coordinates."""
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.left + self.width / 2, self.top + self.height / 2)

    @property
    def aspect_ratio(self) -> float:
        """Width over height; 0 for a degenerate rectangle."""
        if self.height == 0:
            return 0.0
        return self.width / self.height

    def contains(self, other: 'DisplayRect', tolerance: float = 1e-9) -> bool:
        """Check whether ``other`` lies fully inside this rectangle."""
        return (
            other.left >= self.left - tolerance
            and other.top >= self.top - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'left': self.left,
            'top': self.top,
            'width': self.width,
            'height': self.height
        }


@dataclass(frozen=True)
class ImagePlacement:
    """
    Where the source image sits on the display surface.

    Set once when the image loads; the image is never zoomed, so this
    does not change for the rest of the session.
    """
    left: float
    top: float
    scale: float
    source_width: int
    source_height: int

    @property
    def display_width(self) -> float:
        return self.source_width * self.scale

    @property
    def display_height(self) -> float:
        return self.source_height * self.scale

    @property
    def bounds(self) -> DisplayRect:
        """Displayed image bounding box in display coordinates."""
        return DisplayRect(self.left, self.top, self.display_width, self.display_height)

    @classmethod
    def fit(
        cls,
        source_width: int,
        source_height: int,
        viewport_width: float,
        viewport_height: float
    ) -> 'ImagePlacement':
        """
        Scale an image uniformly to fit the viewport and center it.

        Args:
            source_width: Native image width in pixels
            source_height: Native image height in pixels
            viewport_width: Display surface width
            viewport_height: Display surface height

        Returns:
            ImagePlacement for the fitted image
        """
        scale = min(viewport_width / source_width, viewport_height / source_height)
        return cls(
            left=(viewport_width - source_width * scale) / 2,
            top=(viewport_height - source_height * scale) / 2,
            scale=scale,
            source_width=source_width,
            source_height=source_height
        )


@dataclass(frozen=True)
class PriceQuote:
    """Price for the current wall area."""
    area_sqft: float
    total_cost: int
    rate_available: bool
    rate: Optional[int] = None


@dataclass(frozen=True)
class ExportRegion:
    """Crop bounds in the source image's native pixel space."""
    source_x: int
    source_y: int
    source_width: int
    source_height: int

    @property
    def right(self) -> int:
        return self.source_x + self.source_width

    @property
    def bottom(self) -> int:
        return self.source_y + self.source_height

    def as_box(self) -> Tuple[int, int, int, int]:
        """(left, upper, right, lower) box as used by PIL.Image.crop."""
        return (self.source_x, self.source_y, self.right, self.bottom)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'source_x': self.source_x,
            'source_y': self.source_y,
            'source_width': self.source_width,
            'source_height': self.source_height
        }


@dataclass
class LoadedImage:
    """A decoded source image ready to be placed on the display surface."""
    pixel_width: int
    pixel_height: int
    handle: Any
    url: str = ""


@dataclass
class ExportResult:
    """Outcome of a completed export."""
    region: ExportRegion
    image_bytes: bytes
    content_type: str
    url: Optional[str] = None


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the derived state for the UI layer."""
    state: str
    area: float
    total_cost: int
    panel_splits: List[float] = field(default_factory=list)
    below_minimum_area: bool = False
    rate_available: bool = False
    rect: Optional[DisplayRect] = None
    dimensions: Optional[Dimensions] = None

    @property
    def panel_split_count(self) -> int:
        return len(self.panel_splits)

    @property
    def can_commit(self) -> bool:
        """Whether the add-to-cart style commit action may be enabled."""
        return self.rate_available and not self.below_minimum_area
