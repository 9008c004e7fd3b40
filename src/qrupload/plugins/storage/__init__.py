"""Storage backend plugins and registry."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from pydantic import BaseModel

from qrupload.interfaces import BlobStorage
from qrupload.models.config import StorageConfig

logger = logging.getLogger(__name__)

StorageFactory = Callable[[BaseModel], BlobStorage]


@dataclass(frozen=True)
class StoragePlugin:
    """Metadata for a storage backend plugin."""

    name: str
    config_model: type[BaseModel]
    factory: StorageFactory


STORAGE_REGISTRY: dict[str, StoragePlugin] = {}


def register_storage(plugin: StoragePlugin) -> None:
    """Register a storage plugin with collision detection.

    Raises:
        ValueError: If a plugin with the same name is already registered
    """
    if plugin.name in STORAGE_REGISTRY:
        raise ValueError(
            f"Storage plugin '{plugin.name}' is already registered. "
            f"Plugin names must be unique across all storage plugins."
        )
    STORAGE_REGISTRY[plugin.name] = plugin


T = TypeVar("T", bound=Callable[[], StoragePlugin])


def storage_plugin(name: str) -> Callable[[T], T]:
    """Decorator to register a storage backend plugin.

    Usage:
        @storage_plugin(name="my_storage")
        def my_storage_plugin() -> StoragePlugin:
            return StoragePlugin(...)
    """

    def decorator(factory_fn: T) -> T:
        plugin = factory_fn()
        if plugin.name != name:
            raise ValueError(f"Storage plugin name mismatch: {plugin.name!r} != {name!r}")
        register_storage(plugin)
        return factory_fn

    return decorator


def create_storage(config: StorageConfig) -> BlobStorage:
    """Create storage backend from config using plugin registry.

    Raises:
        RuntimeError: If backend is unknown or backend-specific config is missing
    """
    from qrupload.plugins import discover_all_plugins

    discover_all_plugins()
    backend_name = config.backend.lower()

    if backend_name not in STORAGE_REGISTRY:
        available = ", ".join(sorted(STORAGE_REGISTRY.keys()))
        raise RuntimeError(f"Unknown storage backend: '{backend_name}'. Available: {available}")

    plugin = STORAGE_REGISTRY[backend_name]

    # e.g., config.azure, config.local
    specific_config = getattr(config, backend_name, None)
    if specific_config is None:
        raise RuntimeError(
            f"Missing '{backend_name}' config in storage section. "
            f"Add 'storage.{backend_name}' to your config."
        )

    logger.info("Creating storage backend: %s", backend_name)
    return plugin.factory(specific_config)


__all__ = [
    "STORAGE_REGISTRY",
    "StorageFactory",
    "StoragePlugin",
    "create_storage",
    "register_storage",
    "storage_plugin",
]
