"""Configuration loading and validation."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from qrupload.models.config import Config

logger = logging.getLogger(__name__)


class ConfigErrorCode(str, Enum):
    """Stable config error codes."""

    FILE_NOT_FOUND = "CONFIG_FILE_NOT_FOUND"
    YAML_INVALID = "CONFIG_YAML_INVALID"
    EMPTY_FILE = "CONFIG_EMPTY_FILE"
    ROOT_NOT_MAPPING = "CONFIG_ROOT_NOT_MAPPING"
    VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"
    STORAGE_BACKEND_INVALID = "CONFIG_STORAGE_BACKEND_INVALID"


class ConfigError(Exception):
    """Configuration loading or validation error."""

    def __init__(
        self,
        message: str,
        *,
        code: ConfigErrorCode,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.path = path
        self.__cause__ = cause


def load_config(path: Path | None = None) -> Config:
    """Load and validate configuration.

    Args:
        path: Path to YAML config file. When None, defaults plus env vars are used.

    Returns:
        Validated Config instance

    Raises:
        ConfigError: If file not found, YAML invalid, or validation fails
    """
    if path is None:
        return load_config_from_dict({})

    if not path.exists():
        raise ConfigError(
            f"Config file not found: {path}",
            code=ConfigErrorCode.FILE_NOT_FOUND,
            path=path,
        )

    try:
        with path.open() as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}: {e}",
            code=ConfigErrorCode.YAML_INVALID,
            path=path,
            cause=e,
        ) from e

    if raw is None:
        raise ConfigError(
            f"Config file is empty: {path}",
            code=ConfigErrorCode.EMPTY_FILE,
            path=path,
        )

    if not isinstance(raw, dict):
        raise ConfigError(
            f"Config must be a YAML mapping, got {type(raw).__name__}",
            code=ConfigErrorCode.ROOT_NOT_MAPPING,
            path=path,
        )

    try:
        config = Config.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(
            format_validation_error(e, path),
            code=ConfigErrorCode.VALIDATION_FAILED,
            path=path,
            cause=e,
        ) from e

    validate_config(config)
    return config


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load and validate configuration from a dict (useful for testing).

    Raises:
        ConfigError: If validation fails
    """
    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            format_validation_error(e, path=None),
            code=ConfigErrorCode.VALIDATION_FAILED,
            cause=e,
        ) from e

    validate_config(config)
    return config


def validate_config(config: Config) -> None:
    """Check that the configured storage backend is registered."""
    from qrupload.plugins import discover_all_plugins
    from qrupload.plugins.storage import STORAGE_REGISTRY

    discover_all_plugins()
    if config.storage.backend not in STORAGE_REGISTRY:
        available = ", ".join(sorted(STORAGE_REGISTRY.keys()))
        raise ConfigError(
            f"Unknown storage backend: '{config.storage.backend}'. Available: {available}",
            code=ConfigErrorCode.STORAGE_BACKEND_INVALID,
        )


def format_validation_error(e: ValidationError, path: Path | None = None) -> str:
    """Format Pydantic validation error for human readability."""
    prefix = f"Config validation failed ({path}):" if path else "Config validation failed:"
    errors = []
    for err in e.errors():
        loc = " -> ".join(str(x) for x in err["loc"])
        msg = err["msg"]
        errors.append(f"  {loc}: {msg}")
    return prefix + "\n" + "\n".join(errors)
