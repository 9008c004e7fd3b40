"""API route registration."""

from __future__ import annotations

from fastapi import FastAPI

from qrupload.api.routes import health, objects, qr


def register_routes(app: FastAPI) -> None:
    """Register all API routers."""
    app.include_router(qr.router)
    app.include_router(health.router)
    app.include_router(objects.router)
