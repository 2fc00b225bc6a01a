"""
Error types raised by the cropper.

Geometry, layout and pricing never raise on bad numeric input; only the
I/O-bound steps (image load, rasterization, upload) and misuse of the
session state machine do.
"""


class CropperError(Exception):
    """Base class for all cropper errors."""


class ImageLoadError(CropperError):
    """The source image could not be fetched or decoded."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Could not load image '{url}': {reason}")


class RasterizationError(CropperError):
    """The export region cannot be cut out of the source image."""


class UploadError(CropperError):
    """The upload collaborator rejected or failed to store the export."""

    def __init__(self, message: str, status_code=None):
        self.status_code = status_code
        super().__init__(message)


class SessionStateError(CropperError):
    """An operation was requested in a state that does not allow it."""


class ExportInProgressError(SessionStateError):
    """An export was requested while another one is still running."""
