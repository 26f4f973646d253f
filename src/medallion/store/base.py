"""Base classes for lineage store adapters.

This module defines the abstract interface every store adapter implements and
the exception class for store-related failures. The lineage core only reads
from a store; uniqueness and referential integrity of the returned rows are the
store's responsibility.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from medallion.global_models import EdgeKind
from medallion.store.records import (
    ColumnRecord,
    EdgeRecord,
    RelationshipRecord,
    TableRecord,
    TransformationRecord,
)


class StoreError(Exception):
    """Exception raised when a store query fails."""

    pass


class LineageStore(ABC):
    """Abstract base class for lineage store adapters.

    Implementations are discovered via the ``medallion.stores`` entry point
    group and passed explicitly to every lineage operation.

    Example:
        >>> class MyStore(LineageStore):
        ...     @property
        ...     def name(self) -> str:
        ...         return "my-store"
        ...     ...
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the store adapter name used in configuration."""
        pass

    def configure(self, config: Optional[Dict[str, Any]] = None) -> None:
        """Configure the store with adapter-specific settings.

        Args:
            config: Adapter-specific configuration dictionary.

        Raises:
            StoreError: If required configuration is missing or invalid.
        """
        pass

    def ping(self) -> None:
        """Check that the store is reachable.

        Raises:
            StoreError: If the store cannot be queried.
        """
        self.list_tables()

    # Tables and columns

    @abstractmethod
    def find_table(self, name: str, layer: str) -> Optional[TableRecord]:
        """Find a table by name within a layer, or None."""
        pass

    @abstractmethod
    def get_table(self, table_id: int) -> Optional[TableRecord]:
        """Find a table by id, or None."""
        pass

    @abstractmethod
    def find_tables(self, name: str) -> List[TableRecord]:
        """Find every table with the given name, across layers."""
        pass

    @abstractmethod
    def list_tables(self, layer: Optional[str] = None) -> List[TableRecord]:
        """List tables ordered by layer rank then name."""
        pass

    @abstractmethod
    def list_columns(self, table_id: int) -> List[ColumnRecord]:
        """List the columns of a table ordered by name."""
        pass

    @abstractmethod
    def count_columns(self, table_id: int) -> int:
        """Return the number of columns of a table."""
        pass

    # Edges

    @abstractmethod
    def edges_from(
        self, kind: EdgeKind, table_ids: Sequence[int]
    ) -> List[EdgeRecord]:
        """Return edges of ``kind`` whose source is one of ``table_ids``."""
        pass

    @abstractmethod
    def edges_to(self, kind: EdgeKind, table_ids: Sequence[int]) -> List[EdgeRecord]:
        """Return edges of ``kind`` whose target is one of ``table_ids``."""
        pass

    @abstractmethod
    def relationships(
        self, table_ids: Optional[Sequence[int]] = None
    ) -> List[RelationshipRecord]:
        """Return relationships touching ``table_ids`` (all when None)."""
        pass

    @abstractmethod
    def transformations_for_tables(
        self, table_ids: Sequence[int]
    ) -> List[TransformationRecord]:
        """Return transformations whose source or target is in ``table_ids``."""
        pass

    @abstractmethod
    def transformations_between_layers(
        self, source_layer: str, target_layer: str
    ) -> List[TransformationRecord]:
        """Return transformations from ``source_layer`` into ``target_layer``."""
        pass

    # Search

    @abstractmethod
    def search_tables(self, text: str, limit: int) -> List[TableRecord]:
        """Case-insensitive substring match on table name or description."""
        pass

    @abstractmethod
    def search_columns(self, text: str, limit: int) -> List[ColumnRecord]:
        """Case-insensitive substring match on column name."""
        pass

    @abstractmethod
    def search_transformations(
        self, text: str, limit: int
    ) -> List[TransformationRecord]:
        """Case-insensitive substring match on transformation name or description."""
        pass
