"""
Interaction Controller - Drives one cropping session.

Receives UI events (image loaded, dimensions typed, unit switched, crop
dragged, panels toggled, paper type changed, export requested), keeps the
crop geometry, panel layout and price in sync, and exposes a read-only
snapshot for the UI to render.

State machine:
    UNINITIALIZED --image loaded--> READY --export--> EXPORTING --done/failed--> READY
    any state --close()--> CLOSED
"""
import asyncio
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from config.settings import Settings, settings as default_settings
from core.constants import EXPORT_CONTENT_TYPE, EXPORT_FILENAME
from core.exceptions import (
    CropperError,
    ExportInProgressError,
    SessionStateError,
    UploadError,
)
from core.models import (
    Dimensions,
    DisplayRect,
    ExportResult,
    ImagePlacement,
    LoadedImage,
    PriceQuote,
    SessionSnapshot,
)
from cropping.export_mapper import ExportMapper
from cropping.geometry import CropGeometry, aspect_ratio_from_size
from cropping.overlay import draw_crop_overlay
from cropping.panels import PanelLayoutPlanner
from cropping.pricing import quote
from utils.units import (
    area_in_square_feet,
    dimensions_in_inches,
    parse_dimensions,
    parse_unit,
)
from .image_source import BaseImageSource, PilImageSource
from .rasterizer import PilRasterizer
from .upload_service import HttpUploadService

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle states of a cropping session."""
    UNINITIALIZED = 'uninitialized'
    READY = 'ready'
    EXPORTING = 'exporting'
    CLOSED = 'closed'


# States in which the crop rectangle can be edited. EXPORTING is included:
# the export region is taken before the first await, so edits made while an
# export runs only affect the next one.
_INTERACTIVE_STATES = (SessionState.READY, SessionState.EXPORTING)


@dataclass
class CropSession:
    """Mutable state of one cropping session."""
    dimensions: Dimensions
    panels_enabled: bool = False
    selection_key: Optional[str] = None
    image: Optional[LoadedImage] = None
    placement: Optional[ImagePlacement] = None
    geometry: Optional[CropGeometry] = None
    mapper: Optional[ExportMapper] = None
    panel_splits: List[float] = field(default_factory=list)
    quote: Optional[PriceQuote] = None
    last_export: Optional[ExportResult] = None

    @property
    def rect(self) -> Optional[DisplayRect]:
        if self.geometry is None:
            return None
        return self.geometry.rect


class InteractionController:
    """Orchestrates geometry, panel layout, pricing and export for one session."""

    def __init__(
        self,
        surface=None,
        viewport_size: Optional[Tuple[float, float]] = None,
        settings: Optional[Settings] = None,
        rate_provider=None,
        image_source: Optional[BaseImageSource] = None,
        rasterizer=None,
        upload_service=None,
        dimensions: Optional[Dimensions] = None
    ):
        """
        Initialize the controller.

        Args:
            surface: RenderSurface providing the viewport size and redraws
                (optional when ``viewport_size`` is given)
            viewport_size: (width, height) used when there is no surface
            settings: Settings instance (default: global settings)
            rate_provider: Object with ``get_rate(key)`` (default: configured rates)
            image_source: Image loader (default: PilImageSource)
            rasterizer: Object with ``crop_to_buffer(image, region)``
            upload_service: Object with async ``upload(...)`` (default: HTTP
                upload when an endpoint is configured)
            dimensions: Initial wall size (default: configured defaults)
        """
        self.settings = settings or default_settings
        self.surface = surface
        self.viewport_size = viewport_size

        self.rate_provider = rate_provider if rate_provider is not None else self.settings.get_rate_table()
        self.image_source = image_source or PilImageSource(timeout=self.settings.image_timeout)
        self.rasterizer = rasterizer or PilRasterizer(jpeg_quality=self.settings.jpeg_quality)
        if upload_service is None and self.settings.upload_endpoint:
            upload_service = HttpUploadService(
                self.settings.upload_endpoint,
                timeout=self.settings.upload_timeout
            )
        self.upload_service = upload_service

        self.planner = PanelLayoutPlanner(self.settings.panel_target, self.settings.panel_max)

        if dimensions is None:
            default_unit = parse_unit(self.settings.default_unit)
            width, height = self.settings.get_default_dimensions()
            dimensions = Dimensions(width, height, default_unit)

        self.session = CropSession(
            dimensions=dimensions,
            selection_key=self.settings.default_selection_key
        )
        self.state = SessionState.UNINITIALIZED
        self._recompute_price()

    # ------------------------------------------------------------------
    # Image loading
    # ------------------------------------------------------------------

    async def load_image(self, url: str) -> SessionSnapshot:
        """
        Load the source image and start the session.

        Raises:
            ImageLoadError: If the image cannot be fetched or decoded
            SessionStateError: If the session already has an image or is closed
        """
        self._require_state(SessionState.UNINITIALIZED, "load an image")
        try:
            loaded = await self.image_source.load_image(url)
        except CropperError as e:
            logger.error("Image load failed: %s", e)
            raise

        if self.state == SessionState.CLOSED:
            logger.warning("Session closed while loading %s; image discarded", url)
            return self.snapshot()
        return self.attach_image(loaded)

    def attach_image(self, loaded: LoadedImage) -> SessionSnapshot:
        """
        Place a decoded image on the surface and create the crop rectangle.

        Moves the session from UNINITIALIZED to READY.
        """
        self._require_state(SessionState.UNINITIALIZED, "attach an image")
        viewport_width, viewport_height = self._get_viewport_size()
        if viewport_width <= 0 or viewport_height <= 0:
            raise SessionStateError(
                f"Render surface has no area ({viewport_width}x{viewport_height})"
            )

        placement = ImagePlacement.fit(
            loaded.pixel_width,
            loaded.pixel_height,
            viewport_width,
            viewport_height
        )
        geometry = CropGeometry(
            viewport_width,
            viewport_height,
            initial_fill=self.settings.initial_fill,
            max_height_fraction=self.settings.max_height_fraction
        )
        geometry.initialize(placement, self._target_ratio())

        self.session.image = loaded
        self.session.placement = placement
        self.session.geometry = geometry
        self.session.mapper = ExportMapper(placement)
        self.state = SessionState.READY
        logger.info(
            "Session ready: %dx%d image at scale %.4f",
            loaded.pixel_width, loaded.pixel_height, placement.scale
        )

        self._recompute()
        return self.snapshot()

    # ------------------------------------------------------------------
    # UI events
    # ------------------------------------------------------------------

    def on_dimensions_changed(
        self,
        dims: Union[Dimensions, Tuple[Any, Any]],
        unit: Optional[str] = None
    ) -> SessionSnapshot:
        """
        Apply a new wall size.

        Args:
            dims: Dimensions, or a raw (width, height) pair from the inputs
            unit: Unit of ``dims``; overrides ``dims.unit`` when given
        """
        if isinstance(dims, Dimensions):
            width, height = dims.width, dims.height
            unit = unit or dims.unit
        else:
            width, height = dims
            unit = unit or self.session.dimensions.unit

        self.session.dimensions = parse_dimensions(
            width, height, unit, default_unit=self.settings.default_unit
        )
        self._recompute()
        return self.snapshot()

    def on_unit_changed(self, unit: str) -> SessionSnapshot:
        """Reinterpret the entered numbers in another unit."""
        dims = self.session.dimensions
        return self.on_dimensions_changed((dims.width, dims.height), unit)

    def on_drag(self, dx: float, dy: float) -> SessionSnapshot:
        """Move the crop rectangle by (dx, dy) display pixels."""
        if self.state not in _INTERACTIVE_STATES:
            logger.debug("Drag ignored in state %s", self.state.value)
            return self.snapshot()

        rect = self.session.rect
        self.session.geometry.on_drag(rect.left + dx, rect.top + dy)
        self._recompute_panels()
        self._request_redraw()
        return self.snapshot()

    def on_panel_toggle(self, enabled: bool) -> SessionSnapshot:
        """Show or hide the panel split lines."""
        self.session.panels_enabled = bool(enabled)
        self._recompute_panels()
        self._request_redraw()
        return self.snapshot()

    def on_rate_selection_changed(self, key: Optional[str]) -> SessionSnapshot:
        """Switch the active paper type / variant used for pricing."""
        self.session.selection_key = key
        self._recompute_price()
        self._request_redraw()
        return self.snapshot()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    async def request_export(
        self,
        upload: bool = False,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[ExportResult]:
        """
        Rasterize the crop region and optionally upload it.

        The region is taken from the rectangle at call time. Only one export
        runs at a time. If the session is closed while the export is in
        flight, its result or error is dropped and None is returned.

        Args:
            upload: Send the image to the upload service
            metadata: Extra form fields for the upload

        Returns:
            ExportResult, or None if the session was closed meanwhile

        Raises:
            ExportInProgressError: If another export is running
            SessionStateError: If there is no image yet, the session is
                closed, or an upload is requested while committing is disabled
            RasterizationError: If the region lies outside the image
            UploadError: If the upload fails
        """
        if self.state == SessionState.EXPORTING:
            raise ExportInProgressError("An export is already in progress")
        self._require_state(SessionState.READY, "export")

        if upload:
            snapshot = self.snapshot()
            if not snapshot.rate_available:
                raise SessionStateError("No rate is available for the selected option")
            if snapshot.below_minimum_area:
                raise SessionStateError(
                    f"Area {snapshot.area:.2f} ft² is below the minimum of "
                    f"{self.settings.min_area_ft2:.2f} ft²"
                )
            if self.upload_service is None:
                raise UploadError("No upload endpoint configured")

        region = self.session.mapper.to_source_region(self.session.rect)
        source_image = self.session.image.handle
        content_type = getattr(self.rasterizer, 'content_type', EXPORT_CONTENT_TYPE)

        self.state = SessionState.EXPORTING
        logger.info("Export started for region %s", region.as_box())
        try:
            image_bytes = await asyncio.to_thread(
                self.rasterizer.crop_to_buffer, source_image, region
            )
            url = None
            if upload:
                url = await self.upload_service.upload(
                    image_bytes,
                    filename=EXPORT_FILENAME,
                    metadata={**self.commit_metadata(), **(metadata or {})},
                    content_type=content_type
                )
            result = ExportResult(
                region=region,
                image_bytes=image_bytes,
                content_type=content_type,
                url=url
            )
        except CropperError as e:
            if self.state == SessionState.CLOSED:
                logger.warning("Session closed during export; error discarded: %s", e)
                return None
            logger.error("Export failed: %s", e)
            raise
        finally:
            if self.state == SessionState.EXPORTING:
                self.state = SessionState.READY

        if self.state == SessionState.CLOSED:
            logger.warning("Session closed during export; result discarded")
            return None

        self.session.last_export = result
        logger.info("Export finished: %d bytes", len(image_bytes))
        return result

    def commit_metadata(self) -> Dict[str, Any]:
        """Line-item details sent along with the exported crop."""
        width_in, height_in = dimensions_in_inches(self.session.dimensions)
        area = self.session.quote.area_sqft
        return {
            'width_in': f"{width_in:.2f}",
            'height_in': f"{height_in:.2f}",
            'unit': self.session.dimensions.unit,
            'area_ft2': f"{area:.2f}",
            'variant_id': self.session.selection_key or '',
            'quantity': max(1, math.ceil(area)),
        }

    # ------------------------------------------------------------------
    # Teardown & views
    # ------------------------------------------------------------------

    def close(self):
        """Tear the session down; an in-flight export result will be dropped."""
        if self.state != SessionState.CLOSED:
            logger.info("Session closed (was %s)", self.state.value)
        self.state = SessionState.CLOSED

    def snapshot(self) -> SessionSnapshot:
        """Current derived state for the UI."""
        price = self.session.quote
        rect = self.session.rect
        dims = self.session.dimensions
        return SessionSnapshot(
            state=self.state.value,
            area=price.area_sqft,
            total_cost=price.total_cost,
            panel_splits=list(self.session.panel_splits),
            below_minimum_area=price.area_sqft < self.settings.min_area_ft2,
            rate_available=price.rate_available,
            rect=DisplayRect(rect.left, rect.top, rect.width, rect.height) if rect else None,
            dimensions=Dimensions(dims.width, dims.height, dims.unit)
        )

    def render_overlay(self):
        """Draw the crop overlay onto the surface."""
        if self.surface is None:
            return
        draw_crop_overlay(self.surface, self.session.rect, self.session.panel_splits)

    # ------------------------------------------------------------------
    # Recompute pipeline
    # ------------------------------------------------------------------

    def _recompute(self):
        """Dimensions or unit changed: ratio -> geometry -> panels -> price."""
        if self.state in _INTERACTIVE_STATES:
            self.session.geometry.update_aspect_ratio(self._target_ratio())
        self._recompute_panels()
        self._recompute_price()
        self._request_redraw()

    def _recompute_panels(self):
        show = (
            self.settings.enable_panels
            and self.session.panels_enabled
            and self.session.geometry is not None
        )
        if not show:
            self.session.panel_splits = []
            return
        width_in, _ = dimensions_in_inches(self.session.dimensions)
        self.session.panel_splits = self.planner.plan(width_in)
        logger.debug("Panel splits: %s", self.session.panel_splits)

    def _recompute_price(self):
        width_in, height_in = dimensions_in_inches(self.session.dimensions)
        area = area_in_square_feet(width_in, height_in)
        rate = self.rate_provider.get_rate(self.session.selection_key)
        self.session.quote = quote(area, rate)
        logger.debug(
            "Quote: %.2f ft² at %s -> %d",
            area, rate, self.session.quote.total_cost
        )

    def _target_ratio(self) -> float:
        width_in, height_in = dimensions_in_inches(self.session.dimensions)
        return aspect_ratio_from_size(width_in, height_in)

    def _request_redraw(self):
        if self.surface is not None and self.state in _INTERACTIVE_STATES:
            self.surface.request_redraw()

    def _get_viewport_size(self) -> Tuple[float, float]:
        if self.surface is not None:
            return self.surface.get_viewport_size()
        if self.viewport_size is not None:
            return self.viewport_size
        raise SessionStateError("No render surface or viewport size available")

    def _require_state(self, expected: SessionState, action: str):
        if self.state != expected:
            raise SessionStateError(
                f"Cannot {action} while session is {self.state.value}"
            )
