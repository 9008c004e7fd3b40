"""FastAPI dependency helpers."""

from __future__ import annotations

from typing import cast

from fastapi import Request, status

from qrupload.api.errors import APIError, APIErrorCode
from qrupload.service import QRCodeService


async def get_qr_service(request: Request) -> QRCodeService:
    """Get the QRCodeService instance from app state."""
    service = cast(QRCodeService | None, getattr(request.app.state, "qr_service", None))
    if service is None:
        raise APIError(
            "Service not initialized",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code=APIErrorCode.SERVICE_NOT_INITIALIZED,
        )
    return service
