"""Token-checked reads of objects held by the local storage backend."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response

from qrupload.api.dependencies import get_qr_service
from qrupload.api.errors import APIError, APIErrorCode
from qrupload.media_tokens import ReadTokenError
from qrupload.plugins.storage.local import LocalBlobStorage
from qrupload.service import QRCodeService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["objects"])


def _not_found() -> APIError:
    return APIError(
        "Object not found",
        status_code=status.HTTP_404_NOT_FOUND,
        error_code=APIErrorCode.OBJECT_NOT_FOUND,
    )


@router.get("/objects/{key:path}", response_class=Response)
async def get_object(
    key: str,
    token: str | None = Query(default=None),
    service: QRCodeService = Depends(get_qr_service),
) -> Response:
    """Serve a stored object when `token` grants read access to it."""
    storage = service.storage
    if not isinstance(storage, LocalBlobStorage):
        raise _not_found()

    if token is None:
        raise APIError(
            "Read token rejected",
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code=APIErrorCode.READ_TOKEN_REJECTED,
        )

    try:
        storage.verify_read_token(key, token)
    except ReadTokenError as exc:
        logger.info("Rejected read token for key=%s reason=%s", key, exc.code.value)
        raise APIError(
            "Read token rejected",
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code=APIErrorCode.READ_TOKEN_REJECTED,
        ) from exc
    except ValueError as exc:
        raise _not_found() from exc

    if not await storage.exists(key):
        raise _not_found()

    data, content_type = await storage.read_bytes(key)
    return Response(content=data, media_type=content_type)
