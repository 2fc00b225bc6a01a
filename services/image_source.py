"""
Image Source - Loads the product image the crop is drawn over.

Remote images are fetched with httpx; anything else is treated as a
local file path.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from PIL import Image

from core.exceptions import ImageLoadError
from core.models import LoadedImage
from utils.image_utils import decode_image_bytes, open_image

logger = logging.getLogger(__name__)


class BaseImageSource(ABC):
    """Interface for loading source images."""

    @abstractmethod
    async def load_image(self, url: str) -> LoadedImage:
        """
        Load and decode an image.

        Args:
            url: Image URL or path

        Returns:
            LoadedImage with pixel size and a PIL handle

        Raises:
            ImageLoadError: On network or format failure
        """
        pass


def loaded_from_pil(image: Image.Image, url: str = "") -> LoadedImage:
    """Wrap an already decoded PIL image."""
    width, height = image.size
    if width <= 0 or height <= 0:
        raise ImageLoadError(url, f"image has no pixels ({width}x{height})")
    return LoadedImage(pixel_width=width, pixel_height=height, handle=image, url=url)


class PilImageSource(BaseImageSource):
    """Loads images over HTTP(S) or from disk and decodes them with Pillow."""

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the image source.

        Args:
            timeout: HTTP timeout in seconds
            client: Optional shared AsyncClient (one is created per call otherwise)
        """
        self.timeout = timeout
        self.client = client

    async def load_image(self, url: str) -> LoadedImage:
        if not url:
            raise ImageLoadError(url, "no image URL given")

        if url.lower().startswith(('http://', 'https://')):
            data = await self._fetch(url)
            try:
                image = decode_image_bytes(data)
            except (OSError, ValueError) as e:
                raise ImageLoadError(url, f"unreadable image data: {e}") from e
        else:
            try:
                image = await asyncio.to_thread(open_image, url)
            except (OSError, ValueError) as e:
                raise ImageLoadError(url, str(e)) from e

        loaded = loaded_from_pil(image, url)
        logger.info("Loaded image %s (%dx%d)", url, loaded.pixel_width, loaded.pixel_height)
        return loaded

    async def _fetch(self, url: str) -> bytes:
        """Download image bytes."""
        try:
            if self.client is not None:
                response = await self.client.get(url)
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                    response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ImageLoadError(url, f"server returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ImageLoadError(url, f"request failed: {e}") from e
        return response.content
