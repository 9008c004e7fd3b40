"""qrupload FastAPI application."""

from qrupload.api.server import create_app

__all__ = ["create_app"]
