"""QR code rendering and signed blob upload service."""

__version__ = "0.1.0"

from qrupload.errors import QRServiceError
from qrupload.models.storage import SignedURL, StorageUploadResult
from qrupload.service import GeneratedQRCode, QRCodeService

__all__ = [
    "GeneratedQRCode",
    "QRCodeService",
    "QRServiceError",
    "SignedURL",
    "StorageUploadResult",
    "__version__",
]
