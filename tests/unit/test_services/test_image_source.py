"""
Unit tests for services.image_source module.
"""
import asyncio

import httpx
import pytest
from PIL import Image
from core.exceptions import ImageLoadError
from services.image_source import PilImageSource, loaded_from_pil


def _load(source, url):
    return asyncio.run(source.load_image(url))


async def _load_with_transport(handler, url):
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        return await PilImageSource(client=client).load_image(url)


class TestLocalFiles:
    """Tests for loading from disk."""

    def test_load_png(self, sample_image_path):
        """Test a saved PNG loads with its pixel size."""
        loaded = _load(PilImageSource(), sample_image_path)

        assert (loaded.pixel_width, loaded.pixel_height) == (1000, 500)
        assert loaded.url == sample_image_path
        assert loaded.handle.size == (1000, 500)

    def test_missing_file(self, temp_dir):
        """Test a missing file is an ImageLoadError."""
        path = str(temp_dir / "nope.png")

        with pytest.raises(ImageLoadError) as exc_info:
            _load(PilImageSource(), path)

        assert exc_info.value.url == path

    def test_not_an_image(self, temp_dir):
        """Test garbage bytes are an ImageLoadError."""
        path = temp_dir / "broken.jpg"
        path.write_bytes(b"definitely not a jpeg")

        with pytest.raises(ImageLoadError):
            _load(PilImageSource(), str(path))

    def test_empty_url(self):
        with pytest.raises(ImageLoadError):
            _load(PilImageSource(), "")


class TestRemoteImages:
    """Tests for loading over HTTP with a mocked transport."""

    def test_fetch_and_decode(self, sample_png_bytes):
        """Test a 200 response is decoded."""
        def handler(request):
            assert request.url.path == "/wall.png"
            return httpx.Response(200, content=sample_png_bytes)

        loaded = asyncio.run(_load_with_transport(handler, "https://cdn.example.com/wall.png"))

        assert (loaded.pixel_width, loaded.pixel_height) == (1000, 500)

    def test_http_error_status(self):
        """Test a 404 becomes ImageLoadError with the status in the reason."""
        def handler(request):
            return httpx.Response(404)

        with pytest.raises(ImageLoadError) as exc_info:
            asyncio.run(_load_with_transport(handler, "https://cdn.example.com/missing.png"))

        assert "404" in exc_info.value.reason

    def test_network_failure(self):
        """Test transport errors become ImageLoadError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ImageLoadError):
            asyncio.run(_load_with_transport(handler, "https://cdn.example.com/wall.png"))

    def test_undecodable_body(self):
        """Test a non-image body is reported as unreadable."""
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        with pytest.raises(ImageLoadError) as exc_info:
            asyncio.run(_load_with_transport(handler, "https://cdn.example.com/wall.png"))

        assert "unreadable" in exc_info.value.reason


class TestLoadedFromPil:
    """Tests for loaded_from_pil helper."""

    def test_wraps_image(self):
        img = Image.new('RGB', (30, 20))

        loaded = loaded_from_pil(img, "memory://x")

        assert (loaded.pixel_width, loaded.pixel_height) == (30, 20)
        assert loaded.handle is img

    def test_zero_size_rejected(self):
        """Test an image without pixels cannot start a session."""
        with pytest.raises(ImageLoadError):
            loaded_from_pil(Image.new('RGB', (0, 0)))
