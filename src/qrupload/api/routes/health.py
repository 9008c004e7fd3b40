"""Health endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from qrupload.api.dependencies import get_qr_service
from qrupload.service import QRCodeService

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    storage: str


@router.get("/health", response_model=HealthResponse)
async def get_health(service: QRCodeService = Depends(get_qr_service)) -> HealthResponse:
    """Liveness plus storage reachability. Storage outages report `degraded`."""
    storage_ok = await service.storage.ping()
    return HealthResponse(
        status="healthy" if storage_ok else "degraded",
        storage="reachable" if storage_ok else "unavailable",
    )
