"""In-memory lineage store.

Holds a :class:`StoreSnapshot` in process. Useful as a fake in tests and for
exploring an exported snapshot without a database.

Configuration:
    - snapshot: path to a JSON snapshot file (optional)
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from medallion.global_models import EdgeKind
from medallion.store.base import LineageStore, StoreError
from medallion.store.records import (
    ColumnRecord,
    EdgeRecord,
    RelationshipRecord,
    StoreSnapshot,
    TableRecord,
    TransformationRecord,
)


def load_snapshot(input_path: Path) -> StoreSnapshot:
    """
    Load a store snapshot from a JSON file.

    Args:
        input_path: Input file path

    Returns:
        Loaded StoreSnapshot

    Raises:
        FileNotFoundError: If input file doesn't exist
        ValueError: If file content is invalid JSON or doesn't match schema
    """
    if not input_path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {input_path}")

    content = input_path.read_text(encoding="utf-8")
    return StoreSnapshot.model_validate_json(content)


def save_snapshot(snapshot: StoreSnapshot, output_path: Path) -> None:
    """
    Save a store snapshot to a JSON file.

    Args:
        snapshot: StoreSnapshot to save
        output_path: Output file path
    """
    output_path.write_text(
        snapshot.model_dump_json(indent=2),
        encoding="utf-8",
    )


def _contains(value: Optional[str], text: str) -> bool:
    return value is not None and text.lower() in value.lower()


class MemoryStore(LineageStore):
    """Lineage store backed by in-process record lists."""

    def __init__(self, snapshot: Optional[StoreSnapshot] = None) -> None:
        """Initialize the store with an optional snapshot."""
        self.snapshot = snapshot or StoreSnapshot()

    @property
    def name(self) -> str:
        """Return the store adapter name."""
        return "memory"

    def configure(self, config: Optional[Dict[str, Any]] = None) -> None:
        """Load the snapshot named by the ``snapshot`` key, if any.

        Raises:
            StoreError: If the snapshot file is missing or malformed.
        """
        config = config or {}
        snapshot_path = config.get("snapshot")
        if not snapshot_path:
            return
        try:
            self.snapshot = load_snapshot(Path(snapshot_path))
        except (OSError, ValueError) as e:
            raise StoreError(f"Failed to load snapshot {snapshot_path}: {e}") from e

    def ping(self) -> None:
        pass

    def find_table(self, name: str, layer: str) -> Optional[TableRecord]:
        for table in self.snapshot.tables:
            if table.name == name and table.layer == layer:
                return table
        return None

    def get_table(self, table_id: int) -> Optional[TableRecord]:
        for table in self.snapshot.tables:
            if table.id == table_id:
                return table
        return None

    def find_tables(self, name: str) -> List[TableRecord]:
        matches = [t for t in self.snapshot.tables if t.name == name]
        return sorted(matches, key=lambda t: t.layer_rank)

    def list_tables(self, layer: Optional[str] = None) -> List[TableRecord]:
        tables = [t for t in self.snapshot.tables if not layer or t.layer == layer]
        return sorted(tables, key=lambda t: (t.layer_rank, t.name))

    def list_columns(self, table_id: int) -> List[ColumnRecord]:
        cols = [c for c in self.snapshot.columns if c.table_id == table_id]
        return sorted(cols, key=lambda c: c.name)

    def count_columns(self, table_id: int) -> int:
        return sum(1 for c in self.snapshot.columns if c.table_id == table_id)

    def _all_edges(self, kind: EdgeKind) -> List[EdgeRecord]:
        if kind == EdgeKind.RELATIONSHIP:
            records = sorted(self.snapshot.relationships, key=lambda r: r.id)
            return [EdgeRecord.from_relationship(r) for r in records]
        records_t = sorted(self.snapshot.transformations, key=lambda t: t.id)
        return [EdgeRecord.from_transformation(t) for t in records_t]

    def edges_from(
        self, kind: EdgeKind, table_ids: Sequence[int]
    ) -> List[EdgeRecord]:
        ids = set(table_ids)
        return [e for e in self._all_edges(kind) if e.source.id in ids]

    def edges_to(self, kind: EdgeKind, table_ids: Sequence[int]) -> List[EdgeRecord]:
        ids = set(table_ids)
        return [e for e in self._all_edges(kind) if e.target.id in ids]

    def relationships(
        self, table_ids: Optional[Sequence[int]] = None
    ) -> List[RelationshipRecord]:
        records = sorted(self.snapshot.relationships, key=lambda r: r.id)
        if table_ids is None:
            return records
        ids = set(table_ids)
        return [r for r in records if r.source.id in ids or r.target.id in ids]

    def transformations_for_tables(
        self, table_ids: Sequence[int]
    ) -> List[TransformationRecord]:
        ids = set(table_ids)
        return [
            t
            for t in sorted(self.snapshot.transformations, key=lambda t: t.id)
            if t.source.id in ids or t.target.id in ids
        ]

    def transformations_between_layers(
        self, source_layer: str, target_layer: str
    ) -> List[TransformationRecord]:
        return [
            t
            for t in sorted(self.snapshot.transformations, key=lambda t: t.id)
            if t.source.layer == source_layer and t.target.layer == target_layer
        ]

    def search_tables(self, text: str, limit: int) -> List[TableRecord]:
        matches = [
            t
            for t in self.snapshot.tables
            if _contains(t.name, text) or _contains(t.description, text)
        ]
        return sorted(matches, key=lambda t: (t.name, t.id))[:limit]

    def search_columns(self, text: str, limit: int) -> List[ColumnRecord]:
        matches = [c for c in self.snapshot.columns if _contains(c.name, text)]
        return sorted(matches, key=lambda c: (c.name, c.id))[:limit]

    def search_transformations(
        self, text: str, limit: int
    ) -> List[TransformationRecord]:
        matches = [
            t
            for t in self.snapshot.transformations
            if _contains(t.name, text) or _contains(t.description, text)
        ]
        return sorted(matches, key=lambda t: (t.name, t.id))[:limit]
