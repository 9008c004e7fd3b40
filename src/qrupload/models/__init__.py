"""qrupload data models."""

from qrupload.models.config import (
    AzureStorageConfig,
    Config,
    LocalStorageConfig,
    QRConfig,
    ServerConfig,
    SigningConfig,
    StorageConfig,
)
from qrupload.models.storage import SignedURL, StorageUploadResult

__all__ = [
    "AzureStorageConfig",
    "Config",
    "LocalStorageConfig",
    "QRConfig",
    "ServerConfig",
    "SignedURL",
    "SigningConfig",
    "StorageConfig",
    "StorageUploadResult",
]
