"""
VideoTube Backend — Abstract Remote Store Interface
=====================================================

What:  Abstract base class defining the contract for remote object storage.
Why:   UploadHandoff only needs "upload this path, give me the response".
       Keeping that behind an interface lets tests inject a fault-injecting
       store and keeps the Cloudinary SDK out of the handoff entirely.
How:   Concrete implementations inherit from RemoteStore and implement
       upload() and health_check().
Who:   Implemented by CloudinaryStore; consumed by UploadHandoff and /health.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class CloudinaryConfig:
    """
    Credentials and client options for a Cloudinary account.

    Built from Settings and injected into CloudinaryStore at construction.
    """

    cloud_name: str
    api_key: str
    api_secret: str
    timeout: int = 120

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)


class RemoteStore(ABC):
    """
    Abstract interface for a remote object store / CDN.

    Contract:
        - upload() accepts a local file path and returns the store's response
          mapping, which contains at least `url` and `public_id`.
        - Failures raise (implementations wrap SDK errors in RemoteStoreError).
        - The caller never pre-classifies the payload: resource_type="auto"
          lets the store decide between image, video and raw.
    """

    @abstractmethod
    async def upload(
        self,
        local_path: str,
        resource_type: str = "auto",
        **options: Any,
    ) -> Dict[str, Any]:
        """
        Upload a local file and return the store's response unchanged.

        Args:
            local_path: Path to a readable file on local disk.
            resource_type: Store-side payload classification ("auto" by default).
            **options: Extra store options passed through (folder, tags, ...).

        Returns:
            The remote store's response mapping.

        Raises:
            RemoteStoreError: The upload failed for any reason.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Lightweight reachability/credentials check.

        Returns: True if the store answered, False otherwise. Never raises.
        """
        ...
