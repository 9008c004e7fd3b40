"""Local filesystem storage backend."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import secrets
from datetime import datetime
from pathlib import Path
from typing import cast
from urllib.parse import quote

from pydantic import BaseModel

from qrupload.interfaces import BlobStorage
from qrupload.media_tokens import issue_read_token, validate_read_token
from qrupload.models.config import LocalStorageConfig
from qrupload.models.storage import SignedURL, StorageUploadResult
from qrupload.plugins.storage import StoragePlugin, storage_plugin
from qrupload.storage_paths import normalize_blob_key

logger = logging.getLogger(__name__)


class LocalBlobStorage(BlobStorage):
    """Local storage backend for development and tests.

    Read URLs point back at this service's `/objects/{key}` route and carry
    an HMAC token in place of a cloud SAS token.
    """

    def __init__(self, config: LocalStorageConfig) -> None:
        self.root = Path(config.root).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = config.public_base_url.rstrip("/")
        signing_key = config.get_signing_key()
        if not signing_key:
            # Tokens issued with a per-process key stop validating after restart.
            logger.warning(
                "%s not set; using an ephemeral signing key", config.signing_key_env
            )
            signing_key = secrets.token_urlsafe(32)
        self._signing_key = signing_key
        self._shutdown_called = False

    async def put_bytes(self, key: str, data: bytes, *, content_type: str) -> StorageUploadResult:
        self._ensure_open()
        blob_key = normalize_blob_key(key)
        dest = self._full_path(blob_key)
        dest.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(dest.write_bytes, data)
        return StorageUploadResult(
            storage_uri=f"local:{dest}",
            blob_key=blob_key,
            size_bytes=len(data),
            content_type=content_type,
        )

    async def get_read_url(
        self,
        key: str,
        *,
        ttl_s: float,
        now: datetime | None = None,
    ) -> SignedURL:
        self._ensure_open()
        blob_key = normalize_blob_key(key)
        token, starts_at, expires_at = issue_read_token(
            signing_key=self._signing_key,
            blob_key=blob_key,
            ttl_s=ttl_s,
            now=now,
        )
        url = f"{self.public_base_url}/objects/{quote(blob_key)}?token={token}"
        return SignedURL(url=url, starts_at=starts_at, expires_at=expires_at)

    def verify_read_token(self, key: str, token: str, *, now: datetime | None = None) -> None:
        """Raise ReadTokenError unless `token` grants read access to `key`."""
        validate_read_token(
            signing_key=self._signing_key,
            token=token,
            blob_key=normalize_blob_key(key),
            now=now,
        )

    async def read_bytes(self, key: str) -> tuple[bytes, str]:
        """Return object bytes and content type."""
        self._ensure_open()
        blob_key = normalize_blob_key(key)
        data = await asyncio.to_thread(self._full_path(blob_key).read_bytes)
        content_type, _ = mimetypes.guess_type(blob_key)
        return data, content_type or "application/octet-stream"

    async def exists(self, key: str) -> bool:
        self._ensure_open()
        try:
            path = self._full_path(normalize_blob_key(key))
        except ValueError:
            return False
        return await asyncio.to_thread(path.is_file)

    async def ping(self) -> bool:
        return self.root.exists() and self.root.is_dir()

    async def shutdown(self, timeout: float | None = None) -> None:
        _ = timeout
        self._shutdown_called = True

    def _ensure_open(self) -> None:
        if self._shutdown_called:
            raise RuntimeError("Storage has been shut down")

    def _full_path(self, blob_key: str) -> Path:
        return self.root.joinpath(*blob_key.split("/"))


@storage_plugin(name="local")
def local_storage_plugin() -> StoragePlugin:
    """Local storage plugin factory."""

    def factory(cfg: BaseModel) -> BlobStorage:
        return LocalBlobStorage(cast(LocalStorageConfig, cfg))

    return StoragePlugin(
        name="local",
        config_model=LocalStorageConfig,
        factory=factory,
    )
