"""Interface definitions for qrupload components."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from qrupload.models.storage import SignedURL, StorageUploadResult


class Shutdownable(ABC):
    """Async shutdown interface for managed components."""

    @abstractmethod
    async def shutdown(self, timeout: float | None = None) -> None:
        """Release resources."""
        raise NotImplementedError


class BlobStorage(Shutdownable, ABC):
    """Stores rendered images and mints read-only access URLs for them."""

    @abstractmethod
    async def put_bytes(self, key: str, data: bytes, *, content_type: str) -> StorageUploadResult:
        """Create the object at `key` from `data`. Returns storage result."""
        raise NotImplementedError

    @abstractmethod
    async def get_read_url(
        self,
        key: str,
        *,
        ttl_s: float,
        now: datetime | None = None,
    ) -> SignedURL:
        """Return a URL granting read access to `key` from `now` until `now + ttl_s`.

        Issued URLs are not tracked and cannot be revoked before expiry.
        """
        raise NotImplementedError

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if an object exists in storage."""
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Health check. Returns True if storage is reachable."""
        raise NotImplementedError
