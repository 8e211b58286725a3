"""Client for the third-party image hosting upload endpoint."""

import httpx
import structlog

from healthnet.config import settings
from healthnet.core.exceptions import (
    BadRequestException,
    PayloadTooLargeException,
    UpstreamServiceException,
)

logger = structlog.get_logger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}


class ImageHostClient:
    """Uploads profile and cover photos and returns their public URL."""

    def __init__(
        self,
        upload_url: str | None = None,
        upload_preset: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client from settings, with an optional custom transport."""
        self.upload_url = upload_url or settings.image_host_upload_url
        self.upload_preset = upload_preset or settings.image_host_upload_preset
        self._transport = transport

    @staticmethod
    def validate(data: bytes, content_type: str | None) -> None:
        """Reject non-image or oversized uploads before calling the host."""
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise BadRequestException("Please upload a JPEG, PNG, WebP or GIF image")
        if not data:
            raise BadRequestException("Image file is empty")
        if len(data) > settings.image_max_bytes:
            limit_mb = settings.image_max_bytes // (1024 * 1024)
            raise PayloadTooLargeException(f"Image must be smaller than {limit_mb}MB")

    async def upload(self, data: bytes, filename: str, content_type: str | None) -> str:
        """
        Upload an image.

        Args:
            data: Image bytes (already cropped by the client)
            filename: Original file name
            content_type: MIME type of the image

        Returns:
            Public HTTPS URL of the hosted image

        Raises:
            UpstreamServiceException: If the host rejects or fails the upload
        """
        self.validate(data, content_type)

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=settings.image_host_timeout
            ) as client:
                response = await client.post(
                    self.upload_url,
                    data={"upload_preset": self.upload_preset},
                    files={"file": (filename, data, content_type)},
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("image_upload_failed", filename=filename, error=str(e))
            raise UpstreamServiceException("Failed to upload image")

        url = payload.get("secure_url") or payload.get("url")
        if not url:
            logger.error("image_upload_missing_url", filename=filename)
            raise UpstreamServiceException("Image host returned no URL")

        logger.info("image_uploaded", filename=filename, size=len(data))
        return url
