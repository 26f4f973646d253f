"""Store registry with plugin discovery via entry points.

This module handles discovering and instantiating store adapters from
Python entry points, allowing third-party packages to register
custom lineage stores.
"""

import logging
from importlib.metadata import entry_points
from typing import Dict, List, Type

from medallion.store.base import LineageStore, StoreError
from medallion.store.memory import MemoryStore
from medallion.store.sql import SqlStore

logger = logging.getLogger(__name__)

# Cache for discovered stores
_store_cache: Dict[str, Type[LineageStore]] = {}
_discovery_done: bool = False


def _discover_stores() -> None:
    """Discover stores from entry points.

    Built-in stores are always available. Uses importlib.metadata to find
    additional stores in the 'medallion.stores' entry point group.
    """
    global _discovery_done, _store_cache

    if _discovery_done:
        return

    _store_cache.setdefault("sql", SqlStore)
    _store_cache.setdefault("memory", MemoryStore)

    for ep in entry_points(group="medallion.stores"):
        try:
            store_class = ep.load()
            if isinstance(store_class, type) and issubclass(store_class, LineageStore):
                _store_cache.setdefault(ep.name, store_class)
        except Exception as e:
            logger.warning("Skipping store plugin %r: %s", ep.name, e)

    _discovery_done = True


def get_store(name: str) -> LineageStore:
    """Get a store instance by name.

    Args:
        name: The name of the store (e.g., "sql").

    Returns:
        An unconfigured instance of the requested store.

    Raises:
        StoreError: If the store is not found.

    Example:
        >>> store = get_store("sql")
        >>> store.configure({"database_url": "sqlite:///lineage.db"})
    """
    _discover_stores()

    if name not in _store_cache:
        available = ", ".join(sorted(_store_cache.keys()))
        raise StoreError(
            f"Unknown store '{name}'. Available stores: {available or 'none'}."
        )

    return _store_cache[name]()


def list_stores() -> List[str]:
    """List all available store names.

    Returns:
        A sorted list of available store names.
    """
    _discover_stores()
    return sorted(_store_cache.keys())


def register_store(name: str, store_class: Type[LineageStore]) -> None:
    """Register a store programmatically.

    This is primarily useful for testing or for registering stores
    that aren't installed via entry points.

    Args:
        name: The name to register the store under.
        store_class: The store class to register.

    Raises:
        ValueError: If store_class is not a subclass of LineageStore.
    """
    if not isinstance(store_class, type) or not issubclass(store_class, LineageStore):
        raise ValueError(f"{store_class} must be a subclass of LineageStore")

    _store_cache[name] = store_class


def clear_registry() -> None:
    """Clear the store registry.

    This is primarily useful for testing.
    """
    global _discovery_done, _store_cache
    _store_cache.clear()
    _discovery_done = False
