"""
Render Surface - Drawing target for the crop preview.

The controller only needs the viewport size and a redraw hook; drawing
calls come from ``cropping.overlay``. ``PreviewSurface`` renders onto a
Pillow canvas so sessions can be previewed without a GUI.
"""
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from PIL import Image, ImageColor, ImageDraw

from core.constants import PREVIEW_BACKGROUND
from core.models import DisplayRect, ImagePlacement


class BaseRenderSurface(ABC):
    """Interface every render surface implements."""

    @abstractmethod
    def get_viewport_size(self) -> Tuple[float, float]:
        """Get (width, height) of the drawable area."""
        pass

    @abstractmethod
    def draw_rectangle(self, rect: DisplayRect, style: Dict):
        """Draw a rectangle with 'stroke'/'stroke_width' and/or 'fill'."""
        pass

    @abstractmethod
    def draw_line(self, p1: Tuple[float, float], p2: Tuple[float, float], style: Dict):
        """Draw a line segment with 'stroke'/'stroke_width'."""
        pass

    @abstractmethod
    def request_redraw(self):
        """Signal that the derived state changed and the view is stale."""
        pass


def _color(value, alpha: Optional[int] = None):
    """Normalize a color given as '#rrggbb' or a tuple."""
    if isinstance(value, str):
        value = ImageColor.getrgb(value)
    value = tuple(value)
    if alpha is not None and len(value) == 3:
        value = value + (alpha,)
    return value


def _box(rect: DisplayRect) -> Tuple[int, int, int, int]:
    """Integer (x0, y0, x1, y1) box for ImageDraw, inclusive of the far edge."""
    x0, y0 = int(round(rect.left)), int(round(rect.top))
    x1 = max(x0, int(round(rect.right)) - 1)
    y1 = max(y0, int(round(rect.bottom)) - 1)
    return x0, y0, x1, y1


class PreviewSurface(BaseRenderSurface):
    """Pillow-backed surface producing a preview image of the session."""

    def __init__(self, width: int, height: int, background=PREVIEW_BACKGROUND):
        """
        Create a blank surface.

        Args:
            width: Surface width in pixels
            height: Surface height in pixels
            background: RGB fill color
        """
        self.width = int(width)
        self.height = int(height)
        self.background = _color(background)
        self.redraw_requests = 0
        self.canvas = Image.new('RGB', (self.width, self.height), self.background)

    def get_viewport_size(self) -> Tuple[float, float]:
        return (self.width, self.height)

    def clear(self):
        """Reset the canvas to the background color."""
        self.canvas = Image.new('RGB', (self.width, self.height), self.background)

    def draw_image(self, image: Image.Image, placement: ImagePlacement):
        """
        Paste the source image scaled and positioned as on screen.

        Args:
            image: Source PIL image
            placement: Display placement of the image
        """
        size = (
            max(1, int(round(placement.display_width))),
            max(1, int(round(placement.display_height)))
        )
        scaled = image.convert('RGB').resize(size, Image.Resampling.LANCZOS)
        self.canvas.paste(scaled, (int(round(placement.left)), int(round(placement.top))))

    def draw_rectangle(self, rect: DisplayRect, style: Dict):
        box = _box(rect)
        fill = style.get('fill')
        if fill is not None:
            # Translucent fill goes through an overlay so it blends
            overlay = Image.new('RGBA', self.canvas.size, (0, 0, 0, 0))
            ImageDraw.Draw(overlay).rectangle(box, fill=_color(fill, alpha=255))
            base = self.canvas.convert('RGBA')
            base.alpha_composite(overlay)
            self.canvas = base.convert('RGB')

        stroke = style.get('stroke')
        if stroke is not None:
            draw = ImageDraw.Draw(self.canvas)
            draw.rectangle(box, outline=_color(stroke), width=int(style.get('stroke_width', 1)))

    def draw_line(self, p1: Tuple[float, float], p2: Tuple[float, float], style: Dict):
        draw = ImageDraw.Draw(self.canvas)
        points = [
            (int(round(p1[0])), int(round(p1[1]))),
            (int(round(p2[0])), int(round(p2[1])))
        ]
        draw.line(points, fill=_color(style.get('stroke', '#000000')), width=int(style.get('stroke_width', 1)))

    def request_redraw(self):
        self.redraw_requests += 1

    def to_image(self) -> Image.Image:
        """Copy of the current canvas."""
        return self.canvas.copy()
