"""
Image utilities for the wall cropper.

Handles image decoding, orientation, and JPEG encoding.
"""
from io import BytesIO
from typing import Tuple, Union

from PIL import Image, ImageOps

from core.constants import DEFAULT_JPEG_QUALITY


def prepare_image(img: Image.Image) -> Image.Image:
    """
    Apply EXIF orientation and make sure pixel data is loaded.

    Args:
        img: Freshly opened PIL Image

    Returns:
        Upright, fully loaded PIL Image
    """
    img = ImageOps.exif_transpose(img)
    img.load()
    return img


def decode_image_bytes(data: bytes) -> Image.Image:
    """
    Decode raw image bytes to an upright PIL Image.

    Args:
        data: Encoded image (JPEG, PNG, ...)

    Returns:
        PIL Image object
    """
    return prepare_image(Image.open(BytesIO(data)))


def open_image(path: str) -> Image.Image:
    """
    Open an image file from disk.

    Args:
        path: Path to the image file

    Returns:
        PIL Image object
    """
    with Image.open(path) as img:
        return prepare_image(img).copy()


def to_rgb(img: Image.Image) -> Image.Image:
    """Flatten alpha/palette images onto white and convert to RGB."""
    if img.mode == 'RGB':
        return img
    if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
        rgba = img.convert('RGBA')
        background = Image.new('RGB', rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    return img.convert('RGB')


def encode_jpeg(img: Image.Image, quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """
    Encode an image as JPEG bytes.

    Args:
        img: PIL Image in any mode
        quality: JPEG quality (1-100)

    Returns:
        JPEG-encoded bytes
    """
    buf = BytesIO()
    to_rgb(img).save(buf, format='JPEG', quality=quality)
    return buf.getvalue()


def get_image_dimensions(image_or_path: Union[str, Image.Image]) -> Tuple[int, int]:
    """
    Get image dimensions (width, height).

    Args:
        image_or_path: PIL Image or path to image file

    Returns:
        Tuple of (width, height)
    """
    if isinstance(image_or_path, str):
        with Image.open(image_or_path) as img:
            return img.size
    return image_or_path.size
