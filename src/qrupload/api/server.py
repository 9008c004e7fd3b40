"""FastAPI server wiring for qrupload."""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from qrupload import __version__
from qrupload.api.errors import register_exception_handlers
from qrupload.api.routes import register_routes
from qrupload.interfaces import BlobStorage
from qrupload.logging_setup import reset_request_id, set_request_id
from qrupload.models.config import Config
from qrupload.plugins.storage import create_storage
from qrupload.service import QRCodeService

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def create_app(config: Config, storage: BlobStorage | None = None) -> FastAPI:
    """Create the FastAPI application.

    The storage backend is built once here (unless one is passed in) and
    shared by every request through the QRCodeService on `app.state`.
    """
    backend = storage if storage is not None else create_storage(config.storage)

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        _ = app
        logger.info("QR upload service ready: storage=%s", config.storage.backend)
        try:
            yield
        finally:
            await backend.shutdown()

    app = FastAPI(title="qrupload", version=__version__, lifespan=_lifespan)
    app.state.qr_service = QRCodeService(config, backend)
    register_exception_handlers(app)
    register_routes(app)

    @app.middleware("http")
    async def _request_id_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    server_config = config.server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=server_config.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=server_config.cors_allow_headers,
    )

    return app
