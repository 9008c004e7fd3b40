"""Configuration models."""

from __future__ import annotations

import os
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]
DEFAULT_CORS_HEADERS = ["Origin", "X-Requested-With", "Content-Type", "Accept"]


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    cors_allow_headers: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_HEADERS))

    @model_validator(mode="before")
    @classmethod
    def _port_from_env(cls, data: Any) -> Any:
        # $PORT applies only when the file does not set a port; pydantic validates it
        if isinstance(data, dict) and "port" not in data:
            env_port = os.getenv("PORT")
            if env_port is not None:
                return {**data, "port": env_port}
        return data


class AzureStorageConfig(BaseModel):
    """Azure Blob Storage configuration.

    Secrets are read from env vars named here, never from the config file.
    """

    connection_string_env: str = "AZURE_STORAGE_CONNECTION_STRING"
    container: str | None = None
    container_env: str = "CONTAINER_NAME"
    max_block_size: int = Field(default=4 * 1024 * 1024, gt=0)
    max_concurrency: int = Field(default=20, ge=1)

    def get_connection_string(self) -> str | None:
        return os.getenv(self.connection_string_env)

    def get_container(self) -> str | None:
        return self.container or os.getenv(self.container_env)


class LocalStorageConfig(BaseModel):
    """Local storage configuration."""

    root: str = "./storage"
    public_base_url: str = "http://localhost:3000"
    signing_key_env: str = "QRUPLOAD_SIGNING_KEY"

    def get_signing_key(self) -> str | None:
        return os.getenv(self.signing_key_env)


class StorageConfig(BaseModel):
    """Storage backend configuration.

    Backend names are validated against the registry when the backend is created.
    """

    backend: str = "azure"
    key_prefix: str = "qr_codes/"
    azure: AzureStorageConfig = Field(default_factory=AzureStorageConfig)
    local: LocalStorageConfig = Field(default_factory=LocalStorageConfig)

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value

    @field_validator("key_prefix")
    @classmethod
    def _validate_key_prefix(cls, value: str) -> str:
        cleaned = value.strip("/")
        if not cleaned or ".." in cleaned.split("/") or "\\" in cleaned:
            raise ValueError(f"Invalid key_prefix: {value!r}")
        return f"{cleaned}/"


class QRConfig(BaseModel):
    """QR rendering options."""

    error_correction: Literal["L", "M", "Q", "H"] = "M"
    box_size: int = Field(default=10, ge=1, le=100)
    border: int = Field(default=4, ge=0, le=100)
    fill_color: str = "black"
    back_color: str = "white"

    @field_validator("error_correction", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value


class SigningConfig(BaseModel):
    """Signed read URL settings."""

    ttl_s: float = Field(default=86400.0, gt=0)


class Config(BaseModel):
    """Root configuration."""

    version: int = 1
    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    qr: QRConfig = Field(default_factory=QRConfig)
    signing: SigningConfig = Field(default_factory=SigningConfig)

    @model_validator(mode="before")
    @classmethod
    def _validate_server_defaults(cls, data: Any) -> Any:
        # server reads $PORT, so its defaults go through validation like file values
        if isinstance(data, dict) and data.get("server") is None:
            return {**data, "server": {}}
        return data

    @model_validator(mode="after")
    def _validate_version(self) -> Config:
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}")
        return self
