"""QR code generation endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from qrupload.api.dependencies import get_qr_service
from qrupload.api.errors import INTERNAL_SERVER_ERROR_MESSAGE, APIError, APIErrorCode
from qrupload.errors import QRServiceError, RenderError, SigningError, UploadError
from qrupload.service import QRCodeService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["qr"])


class GenerateQRRequest(BaseModel):
    url: str


class GenerateQRResponse(BaseModel):
    qr_code_url: str


def _to_api_error(exc: QRServiceError) -> APIError:
    match exc:
        case RenderError():
            return APIError(
                str(exc),
                status_code=422,
                error_code=APIErrorCode.QR_RENDER_FAILED,
            )
        case UploadError():
            error_code = APIErrorCode.STORAGE_UPLOAD_FAILED
        case SigningError():
            error_code = APIErrorCode.URL_SIGNING_FAILED
        case _:
            error_code = APIErrorCode.INTERNAL_SERVER_ERROR
    return APIError(
        INTERNAL_SERVER_ERROR_MESSAGE,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code=error_code,
    )


@router.post("/generate-qr", response_model=GenerateQRResponse)
async def generate_qr(
    payload: GenerateQRRequest,
    service: QRCodeService = Depends(get_qr_service),
) -> GenerateQRResponse:
    """Render `url` as a QR code and return a time-limited link to the stored PNG."""
    logger.info("URL received: %s", payload.url)
    try:
        generated = await service.generate(payload.url)
    except QRServiceError as exc:
        logger.error(
            "Error generating QR Code: %s",
            exc,
            exc_info=exc,
            extra={"stage": exc.stage, "blob_key": exc.blob_key},
        )
        raise _to_api_error(exc) from exc
    return GenerateQRResponse(qr_code_url=generated.url)
