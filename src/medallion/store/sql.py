"""SQLAlchemy-backed lineage store.

Reads the ``layers``/``tables``/``columns``/``transformations``/
``table_relationships`` schema from any database SQLAlchemy can reach.

Configuration:
    - database_url: SQLAlchemy URL (falls back to the MEDALLION_DATABASE_URL
      and DATABASE_URL environment variables)
    - echo: log emitted SQL (optional)
"""

import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import Select, create_engine, func, or_, select
from sqlalchemy.engine import Engine, RowMapping
from sqlalchemy.exc import SQLAlchemyError

from medallion.global_models import EdgeKind
from medallion.store import schema
from medallion.store.base import LineageStore, StoreError
from medallion.store.records import (
    ColumnRecord,
    EdgeRecord,
    RelationshipRecord,
    TableRecord,
    TransformationRecord,
)

logger = logging.getLogger(__name__)

_st = schema.tables.alias("st")
_tt = schema.tables.alias("tt")
_sl = schema.layers.alias("sl")
_tl = schema.layers.alias("tl")


def _endpoint_columns() -> list:
    return [
        _st.c.id.label("source_id"),
        _st.c.name.label("source_name"),
        _st.c.description.label("source_description"),
        _sl.c.name.label("source_layer"),
        _sl.c.id.label("source_layer_rank"),
        _tt.c.id.label("target_id"),
        _tt.c.name.label("target_name"),
        _tt.c.description.label("target_description"),
        _tl.c.name.label("target_layer"),
        _tl.c.id.label("target_layer_rank"),
    ]


def _join_endpoints(edge_table):
    return (
        edge_table.join(_st, edge_table.c.source_table_id == _st.c.id)
        .join(_tt, edge_table.c.target_table_id == _tt.c.id)
        .join(_sl, _st.c.layer_id == _sl.c.id)
        .join(_tl, _tt.c.layer_id == _tl.c.id)
    )


def _endpoint(row: RowMapping, prefix: str) -> TableRecord:
    return TableRecord(
        id=row[f"{prefix}_id"],
        name=row[f"{prefix}_name"],
        description=row[f"{prefix}_description"],
        layer=row[f"{prefix}_layer"],
        layer_rank=row[f"{prefix}_layer_rank"],
    )


def _table_select() -> Select:
    t, lay = schema.tables, schema.layers
    return select(
        t.c.id,
        t.c.name,
        t.c.description,
        lay.c.name.label("layer"),
        lay.c.id.label("layer_rank"),
    ).select_from(t.join(lay, t.c.layer_id == lay.c.id))


def _relationship_select() -> Select:
    tr = schema.table_relationships
    return select(
        tr.c.id,
        tr.c.relationship_type,
        tr.c.description,
        tr.c.confidence_score,
        *_endpoint_columns(),
    ).select_from(_join_endpoints(tr))


def _transformation_select() -> Select:
    tf = schema.transformations
    return select(
        tf.c.id,
        tf.c.name,
        tf.c.description,
        tf.c.script,
        tf.c.transformation_type,
        tf.c.status,
        tf.c.created_at,
        *_endpoint_columns(),
    ).select_from(_join_endpoints(tf))


def _column_select() -> Select:
    c, t, lay = schema.columns, schema.tables, schema.layers
    return select(
        c.c.id,
        c.c.table_id,
        t.c.name.label("table_name"),
        lay.c.name.label("layer"),
        c.c.name,
        c.c.data_type,
        c.c.is_key,
        c.c.is_nullable,
    ).select_from(
        c.join(t, c.c.table_id == t.c.id).join(lay, t.c.layer_id == lay.c.id)
    )


def _to_relationship(row: RowMapping) -> RelationshipRecord:
    return RelationshipRecord(
        id=row["id"],
        relationship_type=row["relationship_type"],
        description=row["description"],
        confidence_score=float(row["confidence_score"]),
        source=_endpoint(row, "source"),
        target=_endpoint(row, "target"),
    )


def _to_transformation(row: RowMapping) -> TransformationRecord:
    return TransformationRecord(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        script=row["script"],
        transformation_type=row["transformation_type"],
        status=row["status"],
        created_at=row["created_at"],
        source=_endpoint(row, "source"),
        target=_endpoint(row, "target"),
    )


class SqlStore(LineageStore):
    """Lineage store reading a relational database through SQLAlchemy.

    Example:
        >>> store = SqlStore()
        >>> store.configure({"database_url": "postgresql+psycopg://..."})
        >>> store.find_table("orders", "bronze")
    """

    def __init__(self, engine: Optional[Engine] = None) -> None:
        """Initialize the store, optionally around an existing engine."""
        self._engine = engine
        self._database_url: Optional[str] = None
        self._echo = False

    @property
    def name(self) -> str:
        """Return the store adapter name."""
        return "sql"

    def configure(self, config: Optional[Dict[str, Any]] = None) -> None:
        """Configure the database connection.

        Args:
            config: Configuration dictionary with optional keys:
                - database_url: SQLAlchemy URL
                - echo: log emitted SQL statements

        Raises:
            StoreError: If no database URL is configured or in the environment.
        """
        config = config or {}

        self._database_url = (
            config.get("database_url")
            or os.environ.get("MEDALLION_DATABASE_URL")
            or os.environ.get("DATABASE_URL")
        )
        if not self._database_url:
            raise StoreError(
                "A database URL is required. "
                "Set database_url in medallion.toml under [medallion] "
                "or via the MEDALLION_DATABASE_URL environment variable."
            )
        self._echo = bool(config.get("echo", False))

        # Reset engine so it gets recreated with new config
        self._engine = None

    def _get_engine(self) -> Engine:
        if self._engine is None:
            if not self._database_url:
                raise StoreError(
                    "Store not configured. Call configure() with database_url first."
                )
            try:
                self._engine = create_engine(self._database_url, echo=self._echo)
            except (SQLAlchemyError, ImportError) as e:
                raise StoreError(f"Failed to create database engine: {e}") from e
        return self._engine

    def _fetch(self, stmt: Select, operation: str) -> List[RowMapping]:
        engine = self._get_engine()
        logger.debug("Store query: %s", operation)
        try:
            with engine.connect() as conn:
                return list(conn.execute(stmt).mappings().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to {operation}: {e}") from e

    def ping(self) -> None:
        """Run a trivial query against the database."""
        self._fetch(select(func.count()).select_from(schema.layers), "ping database")

    def find_table(self, name: str, layer: str) -> Optional[TableRecord]:
        stmt = _table_select().where(
            schema.tables.c.name == name, schema.layers.c.name == layer
        )
        rows = self._fetch(stmt, f"find table '{name}' in layer '{layer}'")
        return TableRecord(**rows[0]) if rows else None

    def get_table(self, table_id: int) -> Optional[TableRecord]:
        stmt = _table_select().where(schema.tables.c.id == table_id)
        rows = self._fetch(stmt, f"get table {table_id}")
        return TableRecord(**rows[0]) if rows else None

    def find_tables(self, name: str) -> List[TableRecord]:
        stmt = (
            _table_select()
            .where(schema.tables.c.name == name)
            .order_by(schema.layers.c.id)
        )
        return [TableRecord(**row) for row in self._fetch(stmt, f"find tables '{name}'")]

    def list_tables(self, layer: Optional[str] = None) -> List[TableRecord]:
        stmt = _table_select().order_by(schema.layers.c.id, schema.tables.c.name)
        if layer:
            stmt = stmt.where(schema.layers.c.name == layer)
        return [TableRecord(**row) for row in self._fetch(stmt, "list tables")]

    def list_columns(self, table_id: int) -> List[ColumnRecord]:
        stmt = (
            _column_select()
            .where(schema.columns.c.table_id == table_id)
            .order_by(schema.columns.c.name)
        )
        rows = self._fetch(stmt, f"list columns of table {table_id}")
        return [ColumnRecord(**row) for row in rows]

    def count_columns(self, table_id: int) -> int:
        stmt = (
            select(func.count().label("column_count"))
            .select_from(schema.columns)
            .where(schema.columns.c.table_id == table_id)
        )
        rows = self._fetch(stmt, f"count columns of table {table_id}")
        return int(rows[0]["column_count"]) if rows else 0

    def _edges(
        self, kind: EdgeKind, table_ids: Sequence[int], outgoing: bool
    ) -> List[EdgeRecord]:
        if not table_ids:
            return []
        ids = list(table_ids)
        if kind == EdgeKind.RELATIONSHIP:
            tr = schema.table_relationships
            key = tr.c.source_table_id if outgoing else tr.c.target_table_id
            stmt = _relationship_select().where(key.in_(ids)).order_by(tr.c.id)
            rows = self._fetch(stmt, f"fetch {kind.value} edges")
            return [EdgeRecord.from_relationship(_to_relationship(r)) for r in rows]

        tf = schema.transformations
        key = tf.c.source_table_id if outgoing else tf.c.target_table_id
        stmt = _transformation_select().where(key.in_(ids)).order_by(tf.c.id)
        rows = self._fetch(stmt, f"fetch {kind.value} edges")
        return [EdgeRecord.from_transformation(_to_transformation(r)) for r in rows]

    def edges_from(
        self, kind: EdgeKind, table_ids: Sequence[int]
    ) -> List[EdgeRecord]:
        return self._edges(kind, table_ids, outgoing=True)

    def edges_to(self, kind: EdgeKind, table_ids: Sequence[int]) -> List[EdgeRecord]:
        return self._edges(kind, table_ids, outgoing=False)

    def relationships(
        self, table_ids: Optional[Sequence[int]] = None
    ) -> List[RelationshipRecord]:
        tr = schema.table_relationships
        stmt = _relationship_select().order_by(tr.c.id)
        if table_ids is not None:
            if not table_ids:
                return []
            ids = list(table_ids)
            stmt = stmt.where(
                or_(tr.c.source_table_id.in_(ids), tr.c.target_table_id.in_(ids))
            )
        return [_to_relationship(r) for r in self._fetch(stmt, "fetch relationships")]

    def transformations_for_tables(
        self, table_ids: Sequence[int]
    ) -> List[TransformationRecord]:
        if not table_ids:
            return []
        tf = schema.transformations
        ids = list(table_ids)
        stmt = (
            _transformation_select()
            .where(or_(tf.c.source_table_id.in_(ids), tf.c.target_table_id.in_(ids)))
            .order_by(tf.c.id)
        )
        rows = self._fetch(stmt, "fetch table transformations")
        return [_to_transformation(r) for r in rows]

    def transformations_between_layers(
        self, source_layer: str, target_layer: str
    ) -> List[TransformationRecord]:
        stmt = (
            _transformation_select()
            .where(_sl.c.name == source_layer, _tl.c.name == target_layer)
            .order_by(schema.transformations.c.id)
        )
        rows = self._fetch(
            stmt, f"fetch transformations {source_layer} -> {target_layer}"
        )
        return [_to_transformation(r) for r in rows]

    def search_tables(self, text: str, limit: int) -> List[TableRecord]:
        t = schema.tables
        stmt = (
            _table_select()
            .where(
                or_(
                    t.c.name.icontains(text, autoescape=True),
                    t.c.description.icontains(text, autoescape=True),
                )
            )
            .order_by(t.c.name, t.c.id)
            .limit(limit)
        )
        return [TableRecord(**row) for row in self._fetch(stmt, "search tables")]

    def search_columns(self, text: str, limit: int) -> List[ColumnRecord]:
        c = schema.columns
        stmt = (
            _column_select()
            .where(c.c.name.icontains(text, autoescape=True))
            .order_by(c.c.name, c.c.id)
            .limit(limit)
        )
        return [ColumnRecord(**row) for row in self._fetch(stmt, "search columns")]

    def search_transformations(
        self, text: str, limit: int
    ) -> List[TransformationRecord]:
        tf = schema.transformations
        stmt = (
            _transformation_select()
            .where(
                or_(
                    tf.c.name.icontains(text, autoescape=True),
                    tf.c.description.icontains(text, autoescape=True),
                )
            )
            .order_by(tf.c.name, tf.c.id)
            .limit(limit)
        )
        rows = self._fetch(stmt, "search transformations")
        return [_to_transformation(r) for r in rows]
