"""QR upload pipeline: render, upload, sign."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from qrupload.errors import RenderError, SigningError, UploadError
from qrupload.qr import PNG_CONTENT_TYPE, render_qr_png
from qrupload.storage_paths import build_qr_key

if TYPE_CHECKING:
    from qrupload.interfaces import BlobStorage
    from qrupload.models.config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedQRCode:
    blob_key: str
    url: str
    expires_at: datetime


class QRCodeService:
    """Renders a URL as a QR code, stores it, and returns a signed read URL.

    Each stage wraps its failure in a stage-tagged QRServiceError. Nothing is
    retried, and an object uploaded before a signing failure is left in place.
    """

    def __init__(self, config: Config, storage: BlobStorage) -> None:
        self._config = config
        self._storage = storage

    @property
    def storage(self) -> BlobStorage:
        return self._storage

    async def generate(self, url: str, *, now: datetime | None = None) -> GeneratedQRCode:
        """Run the full pipeline for one URL."""
        started = time.perf_counter()

        try:
            png = await asyncio.to_thread(render_qr_png, url, self._config.qr)
        except Exception as exc:
            raise RenderError(exc) from exc

        # Fresh key per call; identical inputs are never deduplicated.
        blob_key = build_qr_key(self._config.storage.key_prefix)

        try:
            await self._storage.put_bytes(blob_key, png, content_type=PNG_CONTENT_TYPE)
        except Exception as exc:
            raise UploadError(blob_key, exc) from exc

        try:
            signed = await self._storage.get_read_url(
                blob_key,
                ttl_s=self._config.signing.ttl_s,
                now=now,
            )
        except Exception as exc:
            raise SigningError(blob_key, exc) from exc

        logger.info(
            "Generated QR code %s",
            blob_key,
            extra={
                "blob_key": blob_key,
                "size_bytes": len(png),
                "expires_at": signed.expires_at.isoformat(),
                "duration_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return GeneratedQRCode(blob_key=blob_key, url=signed.url, expires_at=signed.expires_at)
