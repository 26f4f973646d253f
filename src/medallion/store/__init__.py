"""Store module for reading lineage metadata.

This module provides a plugin system for the relational stores that hold the
``layers``, ``tables``, ``columns``, ``transformations`` and
``table_relationships`` metadata.

Example:
    >>> from medallion.store import get_store, list_stores
    >>> print(list_stores())
    ['memory', 'sql']
    >>> store = get_store("sql")
    >>> store.configure({"database_url": "sqlite:///lineage.db"})
    >>> store.find_table("orders", "bronze")
"""

from medallion.store.base import LineageStore, StoreError
from medallion.store.memory import MemoryStore, load_snapshot, save_snapshot
from medallion.store.records import (
    ColumnRecord,
    EdgeRecord,
    RelationshipRecord,
    StoreSnapshot,
    TableRecord,
    TransformationRecord,
)
from medallion.store.registry import (
    clear_registry,
    get_store,
    list_stores,
    register_store,
)
from medallion.store.sql import SqlStore

__all__ = [
    "LineageStore",
    "StoreError",
    "MemoryStore",
    "SqlStore",
    "load_snapshot",
    "save_snapshot",
    "ColumnRecord",
    "EdgeRecord",
    "RelationshipRecord",
    "StoreSnapshot",
    "TableRecord",
    "TransformationRecord",
    "get_store",
    "list_stores",
    "register_store",
    "clear_registry",
]
