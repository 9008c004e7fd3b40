"""Built-in plugin discovery."""

import importlib
import logging
import pkgutil

logger = logging.getLogger(__name__)


def discover_all_plugins() -> None:
    """Discover and register all built-in plugins.

    Plugins register through decorators, so importing each module in the
    plugin packages triggers registration.
    """
    plugin_types = ["storage"]

    for plugin_type in plugin_types:
        package = importlib.import_module(f"qrupload.plugins.{plugin_type}")
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            if module_name.startswith("_"):
                continue
            try:
                importlib.import_module(f"qrupload.plugins.{plugin_type}.{module_name}")
            except Exception as exc:
                logger.error(
                    "Failed to import built-in plugin module %s.%s: %s",
                    plugin_type,
                    module_name,
                    exc,
                    exc_info=True,
                )


__all__ = ["discover_all_plugins"]
