"""Storage-related data models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class StorageUploadResult(BaseModel):
    """Result of a storage upload."""

    storage_uri: str
    blob_key: str
    size_bytes: int
    content_type: str


class SignedURL(BaseModel):
    """Time-boxed read URL for a single stored object."""

    url: str
    starts_at: datetime
    expires_at: datetime
