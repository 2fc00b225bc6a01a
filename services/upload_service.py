"""
Upload Service - Sends exported crops to the storage endpoint.

The endpoint stores the file and answers with JSON ``{"url": ...}``.
"""
import logging
from typing import Dict, Optional

import httpx

from core.constants import EXPORT_CONTENT_TYPE, EXPORT_FILENAME
from core.exceptions import UploadError

logger = logging.getLogger(__name__)


class HttpUploadService:
    """Posts exported images as multipart form data."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize upload service.

        Args:
            endpoint: URL accepting the multipart upload
            timeout: Request timeout in seconds
            client: Optional shared AsyncClient (one is created per call otherwise)
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self.client = client

    async def upload(
        self,
        image_bytes: bytes,
        filename: str = EXPORT_FILENAME,
        metadata: Optional[Dict] = None,
        content_type: str = EXPORT_CONTENT_TYPE
    ) -> str:
        """
        Upload an image and return its public URL.

        Args:
            image_bytes: Encoded image
            filename: Name sent with the file part
            metadata: Extra form fields (values are sent as strings)
            content_type: MIME type of the file part

        Returns:
            Public URL of the stored file

        Raises:
            UploadError: If the endpoint is missing, unreachable, returns an
                error status, or answers without a URL
        """
        if not self.endpoint:
            raise UploadError("No upload endpoint configured")

        files = {'file': (filename, image_bytes, content_type)}
        data = {key: str(value) for key, value in (metadata or {}).items()}

        try:
            if self.client is not None:
                response = await self.client.post(self.endpoint, files=files, data=data)
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                    response = await client.post(self.endpoint, files=files, data=data)
        except httpx.HTTPError as e:
            raise UploadError(f"Upload request failed: {e}") from e

        if response.status_code >= 400:
            raise UploadError(
                f"Upload failed: {response.status_code} - {response.text}",
                status_code=response.status_code
            )

        try:
            url = response.json().get('url')
        except (ValueError, AttributeError) as e:
            raise UploadError(f"Invalid upload response: {response.text}") from e
        if not url:
            raise UploadError("Upload response did not include a URL")

        logger.info("Uploaded %s (%d bytes) to %s", filename, len(image_bytes), url)
        return url
