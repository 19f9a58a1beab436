"""
VideoTube Backend — Cloudinary Remote Store
=============================================

What:  RemoteStore implementation backed by the Cloudinary Python SDK.
Why:   Cloudinary hosts avatars, cover images, thumbnails and video files and
       returns the public URLs stored on User and Video rows.
How:   Calls cloudinary.uploader.upload() in a worker thread with the
       credentials of the injected CloudinaryConfig passed on every call.
Who:   Constructed once at import time from settings; used by UploadHandoff
       and the /health endpoint.

Credentials:
    The SDK supports a process-wide cloudinary.config(), but this store never
    calls it. cloud_name/api_key/api_secret travel as per-call options, so two
    stores with different accounts can coexist and tests never leak config.

Blocking I/O:
    The SDK is synchronous (urllib3 under the hood). asyncio.to_thread keeps
    a multi-minute video upload from blocking the event loop.
"""

import asyncio
import logging
from typing import Any, Dict

import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader

from app.exceptions import RemoteStoreError
from app.services.store_base import CloudinaryConfig, RemoteStore

logger = logging.getLogger(__name__)


class CloudinaryStore(RemoteStore):
    """Uploads staged files to Cloudinary with resource type auto-detection."""

    def __init__(self, config: CloudinaryConfig):
        self.config = config
        if not config.is_configured:
            logger.warning(
                "CloudinaryStore created without complete credentials; uploads will fail"
            )

    def _credentials(self) -> Dict[str, Any]:
        return {
            "cloud_name": self.config.cloud_name,
            "api_key": self.config.api_key,
            "api_secret": self.config.api_secret,
        }

    async def upload(
        self,
        local_path: str,
        resource_type: str = "auto",
        **options: Any,
    ) -> Dict[str, Any]:
        """
        Upload a file to Cloudinary.

        Returns:
            Cloudinary's response dict (url, secure_url, public_id,
            resource_type, bytes, and duration for videos).

        Raises:
            RemoteStoreError: SDK error (auth, quota, invalid file, HTTP error)
                or the local file could not be read.
        """
        call_options = {
            **options,
            **self._credentials(),
            "resource_type": resource_type,
            "timeout": self.config.timeout,
        }
        try:
            response = await asyncio.to_thread(
                cloudinary.uploader.upload, local_path, **call_options
            )
        except (cloudinary.exceptions.Error, OSError) as e:
            raise RemoteStoreError(
                message="Upload to Cloudinary failed",
                context={"error": str(e), "error_type": type(e).__name__},
            ) from e

        logger.info(
            "File uploaded to Cloudinary: public_id=%s resource_type=%s url=%s",
            response.get("public_id"),
            response.get("resource_type"),
            response.get("url"),
        )
        return response

    async def health_check(self) -> bool:
        """Pings the Cloudinary Admin API with the injected credentials."""
        if not self.config.is_configured:
            return False
        try:
            await asyncio.to_thread(cloudinary.api.ping, **self._credentials())
            return True
        except Exception as e:
            logger.warning("Cloudinary health check failed: %s", str(e))
            return False


def create_cloudinary_store() -> CloudinaryStore:
    """Builds the application's store from settings."""
    from app.config import settings

    return CloudinaryStore(settings.cloudinary_config)


cloudinary_store = create_cloudinary_store()
