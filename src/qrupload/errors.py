"""Error hierarchy for QR upload pipeline stages."""

from __future__ import annotations


class QRServiceError(Exception):
    """Base exception for all QR pipeline errors.

    Carries the stage that failed and the object key involved (when one was
    already generated). Preserves stack traces via exception chaining.
    """

    def __init__(
        self, message: str, stage: str, blob_key: str | None, cause: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.blob_key = blob_key
        self.cause = cause
        self.__cause__ = cause


class RenderError(QRServiceError):
    """QR code rendering failed."""

    def __init__(self, cause: Exception) -> None:
        super().__init__("QR code rendering failed", stage="render", blob_key=None, cause=cause)


class UploadError(QRServiceError):
    """Storage upload failed."""

    def __init__(self, blob_key: str, cause: Exception) -> None:
        super().__init__(
            f"Upload failed for {blob_key}", stage="upload", blob_key=blob_key, cause=cause
        )


class SigningError(QRServiceError):
    """Signed read URL could not be produced.

    The object at `blob_key` was already uploaded when this is raised.
    """

    def __init__(self, blob_key: str, cause: Exception) -> None:
        super().__init__(
            f"Signing failed for {blob_key}", stage="sign", blob_key=blob_key, cause=cause
        )
