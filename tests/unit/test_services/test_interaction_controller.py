"""
Unit tests for services.interaction_controller module.
"""
import asyncio
import math
import threading
from io import BytesIO

import pytest
from PIL import Image
from config.settings import Settings
from core.exceptions import (
    ExportInProgressError,
    ImageLoadError,
    RasterizationError,
    SessionStateError,
    UploadError,
)
from core.models import Dimensions, DisplayRect, ExportRegion, LoadedImage
from services.image_source import BaseImageSource
from services.interaction_controller import InteractionController, SessionState


class FakeImageSource(BaseImageSource):
    """Returns a prepared image, optionally running a hook first."""

    def __init__(self, loaded, before_return=None):
        self.loaded = loaded
        self.before_return = before_return
        self.urls = []

    async def load_image(self, url):
        self.urls.append(url)
        if self.before_return:
            self.before_return()
        return self.loaded


class FailingImageSource(BaseImageSource):
    async def load_image(self, url):
        raise ImageLoadError(url, "server returned 404")


class GatedRasterizer:
    """Blocks in the worker thread until released."""

    content_type = 'image/jpeg'

    def __init__(self):
        self.release = threading.Event()
        self.regions = []

    def crop_to_buffer(self, source_image, region):
        self.regions.append(region)
        self.release.wait(5)
        return b"\xff\xd8gated"


class FailingRasterizer:
    content_type = 'image/jpeg'

    def crop_to_buffer(self, source_image, region):
        raise RasterizationError("encoder exploded")


class GatedFailingRasterizer(GatedRasterizer):
    """Blocks until released, then fails."""

    def crop_to_buffer(self, source_image, region):
        super().crop_to_buffer(source_image, region)
        raise RasterizationError("encoder exploded")


class StubUploader:
    """Records uploads and answers with a fixed URL."""

    def __init__(self):
        self.calls = []

    async def upload(self, image_bytes, filename, metadata, content_type):
        self.calls.append({
            'image_bytes': image_bytes,
            'filename': filename,
            'metadata': metadata,
            'content_type': content_type,
        })
        return "https://cdn.example.com/preview-crop.jpg"


@pytest.fixture
def gated_controller(surface, app_settings, loaded_image):
    rasterizer = GatedRasterizer()
    controller = InteractionController(
        surface=surface,
        settings=app_settings,
        rasterizer=rasterizer
    )
    controller.attach_image(loaded_image)
    return controller, rasterizer


class TestInitialState:
    """Tests for a controller before any image is attached."""

    def test_defaults_priced(self, controller):
        """Test 96x96in defaults give 64 ft² at 250 cents."""
        snap = controller.snapshot()

        assert snap.state == 'uninitialized'
        assert snap.area == pytest.approx(64)
        assert snap.total_cost == 16000
        assert snap.rate_available
        assert snap.rect is None
        assert snap.dimensions == Dimensions(96, 96, 'in')

    def test_events_before_image_are_kept(self, controller, surface):
        """Test size changes before load are stored and priced without drawing."""
        snap = controller.on_dimensions_changed(("120", "96"))

        assert snap.area == pytest.approx(80)
        assert snap.rect is None
        assert surface.redraw_requests == 0

    def test_drag_before_image_ignored(self, controller):
        snap = controller.on_drag(10, 10)

        assert snap.rect is None

    def test_export_before_image(self, controller):
        with pytest.raises(SessionStateError):
            asyncio.run(controller.request_export())

    def test_zero_viewport_rejected(self, app_settings, loaded_image):
        """Test attaching to a surface without area is a state error."""
        controller = InteractionController(viewport_size=(0, 0), settings=app_settings)

        with pytest.raises(SessionStateError):
            controller.attach_image(loaded_image)

        assert controller.state == SessionState.UNINITIALIZED


class TestLoadImage:
    """Tests for InteractionController.load_image."""

    def test_load_moves_to_ready(self, surface, app_settings, loaded_image):
        source = FakeImageSource(loaded_image)
        controller = InteractionController(surface=surface, settings=app_settings, image_source=source)

        snap = asyncio.run(controller.load_image("https://cdn.example.com/wall.png"))

        assert snap.state == 'ready'
        assert source.urls == ["https://cdn.example.com/wall.png"]
        assert snap.rect == DisplayRect(230, 130, 340, 340)

    def test_load_failure_stays_uninitialized(self, surface, app_settings):
        controller = InteractionController(
            surface=surface,
            settings=app_settings,
            image_source=FailingImageSource()
        )

        with pytest.raises(ImageLoadError):
            asyncio.run(controller.load_image("https://cdn.example.com/missing.png"))

        assert controller.state == SessionState.UNINITIALIZED

    def test_close_during_load_discards_image(self, surface, app_settings, loaded_image):
        controller = InteractionController(surface=surface, settings=app_settings)
        controller.image_source = FakeImageSource(loaded_image, before_return=controller.close)

        snap = asyncio.run(controller.load_image("memory://wall.png"))

        assert snap.state == 'closed'
        assert snap.rect is None

    def test_second_load_rejected(self, ready_controller):
        with pytest.raises(SessionStateError):
            asyncio.run(ready_controller.load_image("memory://other.png"))


class TestDimensionEvents:
    """Tests for size, unit, panel and rate events."""

    def test_ready_initial_rect(self, ready_controller, image_bounds):
        snap = ready_controller.snapshot()

        assert snap.state == 'ready'
        assert snap.rect == DisplayRect(230, 130, 340, 340)
        assert image_bounds.contains(snap.rect)

    def test_half_height_wall(self, ready_controller, image_bounds):
        """Test 96x48in gives ratio 2, 32 ft² and 8000 cents."""
        snap = ready_controller.on_dimensions_changed(Dimensions(96, 48, 'in'))

        assert snap.rect.aspect_ratio == pytest.approx(2.0)
        assert snap.rect.width == pytest.approx(340)
        assert snap.area == pytest.approx(32)
        assert snap.total_cost == 8000
        assert image_bounds.contains(snap.rect)

    def test_panel_toggle(self, ready_controller):
        """Test 96in wide shows three split lines when panels are on."""
        ready_controller.on_dimensions_changed((96, 48))
        assert ready_controller.snapshot().panel_splits == []

        snap = ready_controller.on_panel_toggle(True)

        assert snap.panel_splits == [0.25, 0.5, 0.75]
        assert snap.panel_split_count == 3

        assert ready_controller.on_panel_toggle(False).panel_splits == []

    def test_panels_follow_width(self, ready_controller):
        ready_controller.on_panel_toggle(True)

        snap = ready_controller.on_dimensions_changed((30, 96))

        assert snap.panel_splits == [0.5]

    def test_panels_disabled_by_setting(self, surface, loaded_image):
        settings = Settings(_env_file=None, enable_panels=False, variant_prices="paper:250")
        controller = InteractionController(surface=surface, settings=settings)
        controller.attach_image(loaded_image)

        snap = controller.on_panel_toggle(True)

        assert snap.panel_splits == []

    def test_centimeter_input(self, ready_controller):
        """Test cm sizes are converted before pricing."""
        snap = ready_controller.on_dimensions_changed(Dimensions(244, 244, 'cm'))

        expected = (244 / 2.54) ** 2 / 144
        assert snap.area == pytest.approx(expected)
        assert snap.total_cost == round(expected * 250)
        assert snap.dimensions.unit == 'cm'

    def test_unit_switch_reinterprets_numbers(self, ready_controller):
        """Test 96x96 read as cm falls below the 30 ft² minimum."""
        snap = ready_controller.on_unit_changed('cm')

        assert snap.dimensions == Dimensions(96, 96, 'cm')
        assert snap.area == pytest.approx((96 / 2.54) ** 2 / 144)
        assert snap.below_minimum_area
        assert not snap.can_commit

    def test_invalid_input_clamped(self, ready_controller, image_bounds):
        """Test garbage and negative sizes become 0 without raising."""
        snap = ready_controller.on_dimensions_changed(("abc", -5))

        assert snap.area == 0
        assert snap.total_cost == 0
        assert snap.rect.aspect_ratio == pytest.approx(1.0)
        assert image_bounds.contains(snap.rect)

    def test_unknown_unit_uses_default(self, ready_controller):
        snap = ready_controller.on_dimensions_changed((96, 96), unit='furlongs')

        assert snap.dimensions.unit == 'in'

    def test_missing_rate(self, ready_controller):
        """Test a selection without a price is flagged, not free."""
        snap = ready_controller.on_rate_selection_changed('canvas')

        assert not snap.rate_available
        assert snap.total_cost == 0
        assert not snap.can_commit

    def test_rate_switch(self, ready_controller):
        snap = ready_controller.on_rate_selection_changed('vinyl')

        assert snap.total_cost == 19200


class TestDrag:
    """Tests for InteractionController.on_drag."""

    def test_drag_moves(self, ready_controller):
        snap = ready_controller.on_drag(-100, 20)

        assert (snap.rect.left, snap.rect.top) == (130, 150)

    def test_drag_clamped(self, ready_controller, image_bounds):
        snap = ready_controller.on_drag(-1000, -1000)

        assert snap.rect.left == pytest.approx(image_bounds.left)
        assert snap.rect.top == pytest.approx(image_bounds.top)

    def test_non_finite_drag_ignored(self, ready_controller):
        before = ready_controller.snapshot().rect

        snap = ready_controller.on_drag(math.nan, 0)

        assert snap.rect == before

    def test_snapshot_is_a_copy(self, ready_controller):
        """Test mutating a snapshot does not move the crop."""
        snap = ready_controller.snapshot()
        snap.rect.left = 0

        assert ready_controller.snapshot().rect.left == 230

    def test_redraw_requested(self, ready_controller, surface):
        before = surface.redraw_requests

        ready_controller.on_drag(5, 5)
        ready_controller.on_panel_toggle(True)
        ready_controller.on_dimensions_changed((96, 48))

        assert surface.redraw_requests == before + 3


class TestExport:
    """Tests for InteractionController.request_export."""

    def test_export_region(self, ready_controller):
        """Test the initial square exports at source resolution."""
        result = asyncio.run(ready_controller.request_export())

        assert result.region == ExportRegion(288, 38, 425, 425)
        assert result.image_bytes[:2] == b"\xff\xd8"
        assert result.content_type == 'image/jpeg'
        assert result.url is None
        assert ready_controller.state == SessionState.READY
        assert ready_controller.session.last_export is result

    def test_reentrant_export_rejected(self, gated_controller):
        controller, rasterizer = gated_controller

        async def scenario():
            first = asyncio.create_task(controller.request_export())
            await asyncio.sleep(0)
            assert controller.state == SessionState.EXPORTING
            with pytest.raises(ExportInProgressError):
                await controller.request_export()
            rasterizer.release.set()
            return await first

        result = asyncio.run(scenario())

        assert result.image_bytes == b"\xff\xd8gated"
        assert len(rasterizer.regions) == 1
        assert controller.state == SessionState.READY

    def test_region_snapshotted_at_request(self, gated_controller):
        """Test dragging while exporting does not change the exported region."""
        controller, rasterizer = gated_controller

        async def scenario():
            task = asyncio.create_task(controller.request_export())
            await asyncio.sleep(0)
            controller.on_drag(-200, 0)
            rasterizer.release.set()
            return await task

        result = asyncio.run(scenario())

        assert result.region == ExportRegion(288, 38, 425, 425)
        assert controller.snapshot().rect.left == 30

    def test_close_during_export(self, gated_controller):
        """Test closing mid-export drops the result."""
        controller, rasterizer = gated_controller

        async def scenario():
            task = asyncio.create_task(controller.request_export())
            await asyncio.sleep(0)
            controller.close()
            rasterizer.release.set()
            return await task

        assert asyncio.run(scenario()) is None
        assert controller.state == SessionState.CLOSED
        assert controller.session.last_export is None

    def test_close_during_failing_export(self, surface, app_settings, loaded_image):
        """Test an export failing after close is dropped like a result."""
        rasterizer = GatedFailingRasterizer()
        controller = InteractionController(
            surface=surface,
            settings=app_settings,
            rasterizer=rasterizer
        )
        controller.attach_image(loaded_image)

        async def scenario():
            task = asyncio.create_task(controller.request_export())
            await asyncio.sleep(0)
            controller.close()
            rasterizer.release.set()
            return await task

        assert asyncio.run(scenario()) is None
        assert controller.state == SessionState.CLOSED

    def test_failure_returns_to_ready(self, surface, app_settings, loaded_image):
        controller = InteractionController(
            surface=surface,
            settings=app_settings,
            rasterizer=FailingRasterizer()
        )
        controller.attach_image(loaded_image)

        with pytest.raises(RasterizationError):
            asyncio.run(controller.request_export())

        assert controller.state == SessionState.READY

    def test_export_after_close(self, ready_controller):
        ready_controller.close()

        with pytest.raises(SessionStateError):
            asyncio.run(ready_controller.request_export())

    def test_events_after_close_do_not_redraw(self, ready_controller, surface):
        ready_controller.close()
        before = surface.redraw_requests

        snap = ready_controller.on_drag(10, 10)

        assert snap.state == 'closed'
        assert surface.redraw_requests == before


class TestUpload:
    """Tests for exporting with upload."""

    @pytest.fixture
    def uploader(self):
        return StubUploader()

    @pytest.fixture
    def upload_controller(self, surface, app_settings, loaded_image, uploader):
        controller = InteractionController(
            surface=surface,
            settings=app_settings,
            upload_service=uploader
        )
        controller.attach_image(loaded_image)
        return controller

    def test_upload_with_metadata(self, upload_controller, uploader):
        result = asyncio.run(upload_controller.request_export(
            upload=True,
            metadata={'product_handle': 'forest-mural'}
        ))

        assert result.url == "https://cdn.example.com/preview-crop.jpg"
        call = uploader.calls[0]
        assert call['filename'] == 'preview-crop.jpg'
        assert call['content_type'] == 'image/jpeg'
        assert call['image_bytes'] == result.image_bytes
        assert call['metadata']['width_in'] == '96.00'
        assert call['metadata']['height_in'] == '96.00'
        assert call['metadata']['variant_id'] == 'paper'
        assert call['metadata']['quantity'] == 64
        assert call['metadata']['product_handle'] == 'forest-mural'

    def test_quantity_rounds_area_up(self, upload_controller):
        upload_controller.on_dimensions_changed((100, 50))

        metadata = upload_controller.commit_metadata()

        # 5000 / 144 = 34.72 ft²
        assert metadata['quantity'] == 35
        assert metadata['area_ft2'] == '34.72'

    def test_below_minimum_blocked(self, upload_controller, uploader):
        upload_controller.on_dimensions_changed((48, 48))

        with pytest.raises(SessionStateError):
            asyncio.run(upload_controller.request_export(upload=True))

        assert uploader.calls == []
        assert upload_controller.state == SessionState.READY

    def test_missing_rate_blocked(self, upload_controller, uploader):
        upload_controller.on_rate_selection_changed('canvas')

        with pytest.raises(SessionStateError):
            asyncio.run(upload_controller.request_export(upload=True))

        assert uploader.calls == []

    def test_no_upload_service(self, ready_controller):
        """Test upload without a configured endpoint is an UploadError."""
        with pytest.raises(UploadError):
            asyncio.run(ready_controller.request_export(upload=True))


class TestRenderOverlay:
    """Tests for InteractionController.render_overlay."""

    def test_draws_rect_and_lines(self, ready_controller, surface):
        ready_controller.on_panel_toggle(True)
        surface.calls.clear()

        ready_controller.render_overlay()

        lines = [call for call in surface.calls if call[0] == 'line']
        assert len(lines) == 6
        assert surface.calls[-1][1] == DisplayRect(230, 130, 340, 340)


class TestFlushEdgeExport:
    """Tests for exporting crops pushed against the image's far edges."""

    def test_bottom_right_crop_exports(self, app_settings):
        """Test a contained crop flush bottom-right exports despite rounding."""
        image = Image.new('RGB', (3970, 3037), 'white')
        loaded = LoadedImage(pixel_width=3970, pixel_height=3037, handle=image, url="memory://big.png")
        controller = InteractionController(viewport_size=(111, 492), settings=app_settings)
        controller.attach_image(loaded)
        controller.on_dimensions_changed((48, 96), 'in')
        controller.on_drag(1e6, 1e6)

        assert controller.session.geometry.is_contained()

        result = asyncio.run(controller.request_export())

        crop = Image.open(BytesIO(result.image_bytes))
        assert crop.width <= 3970 - result.region.source_x
        assert crop.height <= 3037 - result.region.source_y
        assert controller.state == SessionState.READY
