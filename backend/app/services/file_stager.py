"""
VideoTube Backend — Multipart File Stager
===========================================

What:  Writes uploaded multipart files to a local temp directory.
Why:   The Cloudinary SDK uploads from a path, so every incoming file is
       staged on disk first and handed to UploadHandoff, which deletes it.
How:   Validates size and per-field file kind, then writes the bytes with
       aiofiles under a unique `<field>-<uuid><ext>` name.
Who:   Called by the users and videos routes before their services run.
When:  Right after FastAPI has parsed the multipart form.

Lifecycle of a staged file:
    1. Route receives UploadFile → FileStager.stage() → absolute path
    2. Service passes the path to UploadHandoff.transfer()
    3. UploadHandoff deletes the file whatever the upload outcome
    4. If the request fails before step 2 runs, the route/service calls
       FileStager.discard() so nothing is left in the temp directory

Naming:
    Staged names embed the form field and a UUID (e.g. avatar-3f2a...9c.png).
    Concurrent requests uploading the same field never share a path, and no
    user-supplied filename reaches the file system.
"""

import logging
import uuid
from pathlib import Path
from typing import FrozenSet, Optional

import aiofiles
import aiofiles.os

from app.config import settings
from app.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Kinds ────────────────────────────────────────────────────
IMAGE_EXTENSIONS: FrozenSet[str] = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp"})
VIDEO_EXTENSIONS: FrozenSet[str] = frozenset({".mp4", ".mov", ".webm", ".mkv", ".avi"})


class FileStager:
    """
    Manages the temp directory that holds uploads awaiting the handoff.

    Directory Structure:
        public/uploads/temp/
        ├── avatar-1b9d6bcd-bbfd-4b2d-9b5d-ab8dfbbd4bed.png
        ├── coverImage-6ec0bd7f-11c0-43da-975e-2a8ad9ebae0b.jpg
        └── videoFile-c9bf9e57-1685-4c89-bafb-ff5af830be8a.mp4
    """

    def __init__(self, temp_dir: Optional[str] = None):
        """
        Args:
            temp_dir: Override the staging directory (used in tests).
                      If None, uses settings.upload_temp_dir.
        """
        self.temp_dir = Path(temp_dir or settings.upload_temp_dir).resolve()
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        logger.info("FileStager initialized with temp_dir=%s", self.temp_dir)

    def validate_kind(self, field_name: str, filename: str, allowed: FrozenSet[str]) -> str:
        """
        Check the file extension against the kinds a form field accepts.

        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError naming the field.
        """
        ext = Path(filename).suffix.lower()
        if ext not in allowed:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'unknown'}' is not supported for {field_name}. "
                    f"Allowed types: {', '.join(sorted(allowed))}"
                ),
                field=field_name,
                context={"extension": ext, "allowed": sorted(allowed)},
            )
        return ext

    def validate_size(self, actual_size: int, field_name: str = "file") -> None:
        """
        Reject empty files and files larger than settings.max_file_size.

        Raises:
            ValidationError with a human-readable size message
        """
        if actual_size == 0:
            raise ValidationError(
                message=f"The uploaded {field_name} is empty.",
                field=field_name,
            )

        if actual_size > settings.max_file_size:
            max_mb = settings.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=(
                    f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds "
                    f"maximum of {max_mb:.0f}MB."
                ),
                field=field_name,
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def _staged_path(self, field_name: str, extension: str) -> Path:
        return self.temp_dir / f"{field_name}-{uuid.uuid4()}{extension}"

    async def stage(
        self,
        field_name: str,
        filename: str,
        content: bytes,
        allowed: Optional[FrozenSet[str]] = None,
    ) -> str:
        """
        Validate and write one uploaded file to the temp directory.

        Args:
            field_name: Multipart form field the file came from (avatar, videoFile, ...)
            filename: Client-supplied filename; only its extension is used
            content: Raw file bytes
            allowed: Extension allow-list for this field; None skips the kind check

        Returns:
            Absolute path of the staged file.

        Raises:
            ValidationError: Empty, oversized or wrong kind of file.
            FileStorageError: The file could not be written.
        """
        if allowed is not None:
            ext = self.validate_kind(field_name, filename, allowed)
        else:
            ext = Path(filename).suffix.lower()
        self.validate_size(len(content), field_name)

        path = self._staged_path(field_name, ext)
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to stage %s at %s: %s", field_name, path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded file. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Staged %s: %s (%d bytes)", field_name, path.name, len(content))
        return str(path)

    async def stage_upload(
        self,
        field_name: str,
        upload,
        allowed: Optional[FrozenSet[str]] = None,
    ) -> Optional[str]:
        """
        Stage a FastAPI UploadFile; a missing or nameless upload yields None.

        The upload is always closed afterwards.
        """
        if upload is None or not upload.filename:
            return None
        try:
            content = await upload.read()
            return await self.stage(field_name, upload.filename, content, allowed)
        finally:
            await upload.close()

    async def discard(self, file_path: Optional[str]) -> None:
        """
        Best-effort removal of a staged file that never reached the handoff.

        Missing files are ignored; other failures are logged, never raised.
        """
        if not file_path:
            return
        try:
            await aiofiles.os.remove(file_path)
            logger.info("Discarded staged file: %s", Path(file_path).name)
        except FileNotFoundError:
            logger.debug("Discard: file already gone: %s", Path(file_path).name)
        except OSError as e:
            logger.warning("Failed to discard staged file %s: %s", file_path, str(e))


file_stager = FileStager()
