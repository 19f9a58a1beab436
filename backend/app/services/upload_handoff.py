"""
VideoTube Backend — Upload Handoff
====================================

What:  Moves a staged local file to the remote store and always deletes the
       local copy afterwards.
Why:   FileStager writes multipart uploads to a temp directory; those files
       must never outlive the request that created them.
How:   One store upload, then cleanup in a `finally` block, so the deletion
       runs on the success path and the failure path alike.
Who:   Called by UserService (avatar, cover image) and VideoService
       (video file, thumbnail).

Contract:
    transfer(path)          → store response | None     (never raises)
    transfer_outcome(path)  → UploadOutcome(result, error)  (never raises)

    ┌──────────────┐     ┌─────────────────┐     ┌──────────────────┐
    │ staged file  │────▶│ store.upload()  │────▶│ delete local copy│
    └──────────────┘     └─────────────────┘     └──────────────────┘
                               │ raises                  ▲
                               └─────────────────────────┘

    Empty path:     None, no store call, no deletion.
    Upload fails:   local file deleted, None returned, error not re-raised.
    No retries:     a failed upload is terminal for that call.

Cleanup semantics:
    A file that is already gone at cleanup time is treated as cleaned up
    (logged at DEBUG). Any other OS error is logged at ERROR and swallowed;
    it does not change the returned result.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiofiles.os

from app.services.store_base import RemoteStore

logger = logging.getLogger(__name__)

UploadResult = Dict[str, Any]


@dataclass(frozen=True)
class UploadError:
    """Why a transfer produced no result."""

    reason: str  # "empty_path" | "upload_failed"
    message: str
    error_type: Optional[str] = None


@dataclass(frozen=True)
class UploadOutcome:
    """Result-style return of UploadHandoff.transfer_outcome()."""

    result: Optional[UploadResult] = None
    error: Optional[UploadError] = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @property
    def url(self) -> Optional[str]:
        if self.result is None:
            return None
        return self.result.get("url")


class UploadHandoff:
    """
    Transfers staged files to a RemoteStore.

    The store is injected so the Cloudinary credentials are explicit
    configuration of the store, and tests can pass a fake.
    """

    def __init__(self, store: RemoteStore):
        self.store = store

    async def transfer(self, local_path: Optional[str]) -> Optional[UploadResult]:
        """
        Upload a staged file and delete it.

        Args:
            local_path: Staged file path. Empty or None short-circuits to None.

        Returns:
            The store's response, unchanged, on success; None otherwise.
        """
        outcome = await self.transfer_outcome(local_path)
        return outcome.result

    async def transfer_outcome(self, local_path: Optional[str]) -> UploadOutcome:
        """Same as transfer(), but says why there is no result."""
        if not local_path:
            return UploadOutcome(
                error=UploadError(reason="empty_path", message="No local file path provided"),
            )

        try:
            result = await self.store.upload(local_path, resource_type="auto")
            return UploadOutcome(result=result)
        except Exception as e:
            logger.warning("Upload of staged file %s failed: %s", local_path, str(e))
            return UploadOutcome(
                error=UploadError(
                    reason="upload_failed",
                    message=getattr(e, "message", None) or str(e) or "Upload failed",
                    error_type=type(e).__name__,
                ),
            )
        finally:
            await self._remove_local(local_path)

    async def _remove_local(self, local_path: str) -> None:
        try:
            await aiofiles.os.remove(local_path)
            logger.debug("Removed staged file: %s", local_path)
        except FileNotFoundError:
            logger.debug("Staged file already gone: %s", local_path)
        except OSError as e:
            logger.error("Could not remove staged file %s: %s", local_path, str(e))


def create_upload_handoff() -> UploadHandoff:
    from app.services.cloudinary_store import cloudinary_store

    return UploadHandoff(cloudinary_store)


upload_handoff = create_upload_handoff()
