"""
Pytest configuration and global fixtures.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import Settings
from core.models import ImagePlacement, LoadedImage


class RecordingSurface:
    """Render surface double that records drawing calls."""

    def __init__(self, width=800, height=600):
        self.width = width
        self.height = height
        self.calls = []
        self.redraw_requests = 0

    def get_viewport_size(self):
        return (self.width, self.height)

    def draw_rectangle(self, rect, style):
        self.calls.append(('rect', rect, style))

    def draw_line(self, p1, p2, style):
        self.calls.append(('line', (p1, p2), style))

    def request_redraw(self):
        self.redraw_requests += 1


@pytest.fixture
def temp_dir(tmp_path):
    """Provide temporary directory for test files."""
    return tmp_path


@pytest.fixture
def sample_image():
    """1000x500 RGB image with a red block at (200..400, 100..300)."""
    from PIL import Image, ImageDraw

    img = Image.new('RGB', (1000, 500), color='white')
    ImageDraw.Draw(img).rectangle([200, 100, 399, 299], fill=(255, 0, 0))
    return img


@pytest.fixture
def sample_image_path(temp_dir, sample_image):
    """Sample image saved as PNG."""
    img_path = temp_dir / "wall.png"
    sample_image.save(img_path)
    return str(img_path)


@pytest.fixture
def sample_png_bytes(sample_image):
    """Sample image encoded as PNG bytes."""
    from io import BytesIO

    buf = BytesIO()
    sample_image.save(buf, format='PNG')
    return buf.getvalue()


@pytest.fixture
def loaded_image(sample_image):
    """Sample image wrapped as a LoadedImage."""
    return LoadedImage(
        pixel_width=sample_image.width,
        pixel_height=sample_image.height,
        handle=sample_image,
        url="memory://wall.png"
    )


@pytest.fixture
def placement():
    """1000x500 image fitted into an 800x600 surface (scale 0.8, top 100)."""
    return ImagePlacement.fit(1000, 500, 800, 600)


@pytest.fixture
def image_bounds(placement):
    return placement.bounds


@pytest.fixture
def app_settings():
    """Settings with panels enabled and one priced paper type."""
    return Settings(
        _env_file=None,
        enable_panels=True,
        panel_target=24,
        panel_max=25,
        min_area_ft2=30,
        variant_prices="paper:250,vinyl:300",
        default_selection_key="paper",
        default_unit="in"
    )


@pytest.fixture
def surface():
    return RecordingSurface(800, 600)


@pytest.fixture
def controller(surface, app_settings):
    """Controller before any image is attached."""
    from services.interaction_controller import InteractionController

    return InteractionController(surface=surface, settings=app_settings)


@pytest.fixture
def ready_controller(controller, loaded_image):
    """Controller with the sample image attached."""
    controller.attach_image(loaded_image)
    return controller

