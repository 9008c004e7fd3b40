"""Azure Blob Storage backend plugin."""

from __future__ import annotations

import asyncio
import io
import logging
import threading
from datetime import UTC, datetime, timedelta
from typing import cast

from azure.storage.blob import (
    BlobClient,
    BlobSasPermissions,
    BlobServiceClient,
    ContentSettings,
    generate_blob_sas,
)
from pydantic import BaseModel

from qrupload.interfaces import BlobStorage
from qrupload.models.config import AzureStorageConfig
from qrupload.models.storage import SignedURL, StorageUploadResult
from qrupload.plugins.storage import StoragePlugin, storage_plugin
from qrupload.storage_paths import normalize_blob_key

logger = logging.getLogger(__name__)


class AzureBlobStorage(BlobStorage):
    """Azure Blob Storage backend.

    Uses the azure-storage-blob SDK. Blocking SDK calls run in worker threads.

    The service client is built from the connection string on first use and
    then shared read-only by all requests. A malformed connection string
    therefore surfaces as an upload failure rather than a startup failure.

    Signing needs the account's shared key, so the connection string must
    carry an AccountKey (SAS-only connection strings can upload but not sign).
    """

    def __init__(self, config: AzureStorageConfig) -> None:
        """Initialize Azure storage.

        Optional config:
            connection_string_env: Env var holding the connection string
                (default: AZURE_STORAGE_CONNECTION_STRING)
            container / container_env: Container name, or env var holding it
                (default env: CONTAINER_NAME)
            max_block_size: Block size for chunked uploads (default: 4 MiB)
            max_concurrency: Parallel block uploads per object (default: 20)
        """
        self._config = config
        self.container_name = config.get_container()
        self._connection_string = config.get_connection_string()
        self._service_client: BlobServiceClient | None = None
        self._client_lock = threading.Lock()
        self._shutdown_called = False

        logger.info("AzureBlobStorage initialized: container=%s", self.container_name)

    def _get_service_client(self) -> BlobServiceClient:
        with self._client_lock:
            if self._service_client is None:
                if not self._connection_string:
                    raise ValueError(
                        "Missing Azure connection string. "
                        f"Set {self._config.connection_string_env}."
                    )
                self._service_client = BlobServiceClient.from_connection_string(
                    self._connection_string,
                    max_block_size=self._config.max_block_size,
                    max_single_put_size=self._config.max_block_size,
                )
            return self._service_client

    def _blob_client(self, key: str) -> BlobClient:
        if not self.container_name:
            raise ValueError(f"Missing container name. Set {self._config.container_env}.")
        service = self._get_service_client()
        return service.get_blob_client(container=self.container_name, blob=key)

    async def put_bytes(self, key: str, data: bytes, *, content_type: str) -> StorageUploadResult:
        """Upload bytes as a block blob."""
        self._ensure_open()
        blob_key = normalize_blob_key(key)

        await asyncio.to_thread(self._upload, blob_key, data, content_type)

        return StorageUploadResult(
            storage_uri=f"azure:{self.container_name}/{blob_key}",
            blob_key=blob_key,
            size_bytes=len(data),
            content_type=content_type,
        )

    def _upload(self, key: str, data: bytes, content_type: str) -> None:
        """Upload blob (blocking operation)."""
        blob_client = self._blob_client(key)
        stream = io.BytesIO(data)
        blob_client.upload_blob(
            stream,
            length=len(data),
            overwrite=False,
            max_concurrency=self._config.max_concurrency,
            content_settings=ContentSettings(content_type=content_type),
        )
        logger.debug("Uploaded to Azure: %s/%s (%d bytes)", self.container_name, key, len(data))

    async def get_read_url(
        self,
        key: str,
        *,
        ttl_s: float,
        now: datetime | None = None,
    ) -> SignedURL:
        """Return the blob URL suffixed with a read-only SAS token."""
        self._ensure_open()
        blob_key = normalize_blob_key(key)
        starts_at = now or datetime.now(UTC)
        expires_at = starts_at + timedelta(seconds=ttl_s)
        url = await asyncio.to_thread(self._signed_url, blob_key, starts_at, expires_at)
        return SignedURL(url=url, starts_at=starts_at, expires_at=expires_at)

    def _signed_url(self, key: str, starts_at: datetime, expires_at: datetime) -> str:
        blob_client = self._blob_client(key)
        credential = self._get_service_client().credential
        account_key = cast(str | None, getattr(credential, "account_key", None))
        if not account_key:
            raise ValueError(
                "Storage credential cannot sign SAS tokens; "
                "the connection string must include AccountKey."
            )

        sas_token = generate_blob_sas(
            account_name=blob_client.account_name,
            container_name=blob_client.container_name,
            blob_name=blob_client.blob_name,
            account_key=account_key,
            permission=BlobSasPermissions(read=True),
            start=starts_at,
            expiry=expires_at,
        )
        return f"{blob_client.url}?{sas_token}"

    async def exists(self, key: str) -> bool:
        """Check if blob exists."""
        self._ensure_open()
        blob_key = normalize_blob_key(key)
        return await asyncio.to_thread(lambda: bool(self._blob_client(blob_key).exists()))

    async def ping(self) -> bool:
        """Health check - verify the container is reachable."""
        if not self.container_name:
            return False

        def _check() -> bool:
            service = self._get_service_client()
            return bool(service.get_container_client(self.container_name).exists())

        try:
            return await asyncio.to_thread(_check)
        except Exception as e:
            logger.warning("Azure ping failed: %s", e, exc_info=True)
            return False

    async def shutdown(self, timeout: float | None = None) -> None:
        """Close the service client."""
        _ = timeout
        if self._shutdown_called:
            return

        self._shutdown_called = True
        with self._client_lock:
            client = self._service_client
            self._service_client = None
        if client is not None:
            await asyncio.to_thread(client.close)
        logger.info("AzureBlobStorage closed")

    def _ensure_open(self) -> None:
        if self._shutdown_called:
            raise RuntimeError("Storage has been shut down")


@storage_plugin(name="azure")
def azure_storage_plugin() -> StoragePlugin:
    """Azure Blob Storage plugin factory."""

    def factory(cfg: BaseModel) -> BlobStorage:
        return AzureBlobStorage(cast(AzureStorageConfig, cfg))

    return StoragePlugin(
        name="azure",
        config_model=AzureStorageConfig,
        factory=factory,
    )
