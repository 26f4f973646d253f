"""Shared fixtures: a small bronze/silver/gold warehouse.

Tables::

    bronze: orders(1), customer_raw(4), product_raw(5)
    silver: orders_clean(2), loop_a(6)
    gold:   orders_agg(3), loop_b(7)

Transformations: orders -> orders_clean (cleansing), orders_clean ->
orders_agg (aggregation), product_raw -> orders_clean (enrichment).

Relationships: orders -> orders_clean, orders_clean -> orders_agg,
product_raw -> orders_clean, customer_raw -> loop_a and the cycle
loop_a <-> loop_b.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

import pytest
from sqlalchemy import create_engine, insert

from medallion.store import schema
from medallion.store.memory import MemoryStore
from medallion.store.records import (
    ColumnRecord,
    RelationshipRecord,
    StoreSnapshot,
    TableRecord,
    TransformationRecord,
)
from medallion.store.sql import SqlStore

LAYER_RANKS = {"bronze": 1, "silver": 2, "gold": 3}


def make_table(
    table_id: int, name: str, layer: str, description: Optional[str] = None
) -> TableRecord:
    return TableRecord(
        id=table_id,
        name=name,
        description=description,
        layer=layer,
        layer_rank=LAYER_RANKS[layer],
    )


def build_snapshot() -> StoreSnapshot:
    orders = make_table(1, "orders", "bronze", "Raw order events")
    orders_clean = make_table(2, "orders_clean", "silver")
    orders_agg = make_table(3, "orders_agg", "gold", "Daily order totals")
    customer_raw = make_table(4, "customer_raw", "bronze", "Raw CRM export")
    product_raw = make_table(5, "product_raw", "bronze", "Raw product catalogue")
    loop_a = make_table(6, "loop_a", "silver")
    loop_b = make_table(7, "loop_b", "gold")
    tables = [orders, orders_clean, orders_agg, customer_raw, product_raw, loop_a, loop_b]

    def column(column_id, table, name, data_type, is_key=False, is_nullable=True):
        return ColumnRecord(
            id=column_id,
            table_id=table.id,
            table_name=table.name,
            layer=table.layer,
            name=name,
            data_type=data_type,
            is_key=is_key,
            is_nullable=is_nullable,
        )

    columns = [
        column(1, orders, "order_id", "INT", is_key=True, is_nullable=False),
        column(2, orders, "amount", "DECIMAL"),
        column(3, orders, "customer_id", "INT"),
        column(4, orders_clean, "order_id", "INT", is_key=True, is_nullable=False),
        column(5, orders_clean, "amount", "DECIMAL"),
        column(6, orders_agg, "total_amount", "DECIMAL"),
        column(7, customer_raw, "customer_id", "INT", is_key=True),
        column(8, product_raw, "product_id", "INT", is_key=True),
    ]

    transformations = [
        TransformationRecord(
            id=1,
            name="clean_orders",
            description="Deduplicate and type raw orders",
            transformation_type="cleansing",
            script="SELECT DISTINCT * FROM orders",
            status="active",
            created_at=datetime(2024, 1, 1, 9, 0),
            source=orders,
            target=orders_clean,
        ),
        TransformationRecord(
            id=2,
            name="aggregate_orders",
            description="Daily totals",
            transformation_type="aggregation",
            status="active",
            created_at=datetime(2024, 1, 2, 9, 0),
            source=orders_clean,
            target=orders_agg,
        ),
        TransformationRecord(
            id=3,
            name="enrich_orders",
            transformation_type="enrichment",
            created_at=datetime(2024, 1, 5, 9, 0),
            source=product_raw,
            target=orders_clean,
        ),
    ]

    def relationship(rel_id, source, target, rel_type, confidence):
        return RelationshipRecord(
            id=rel_id,
            relationship_type=rel_type,
            confidence_score=confidence,
            source=source,
            target=target,
        )

    relationships = [
        relationship(1, orders, orders_clean, "derives", 0.9),
        relationship(2, orders_clean, orders_agg, "aggregates", 0.8),
        relationship(3, product_raw, orders_clean, "enriches", 0.6),
        relationship(4, loop_a, loop_b, "feeds", 0.5),
        relationship(5, loop_b, loop_a, "feeds", 0.5),
        relationship(6, customer_raw, loop_a, "feeds", 0.7),
    ]

    return StoreSnapshot(
        tables=tables,
        columns=columns,
        relationships=relationships,
        transformations=transformations,
    )


def populate_database(url: str, snapshot: StoreSnapshot) -> None:
    """Create the lineage schema at ``url`` and load the snapshot into it."""
    engine = create_engine(url)
    schema.metadata.create_all(engine)
    layer_ids = dict(LAYER_RANKS)
    with engine.begin() as conn:
        conn.execute(
            insert(schema.layers),
            [{"id": rank, "name": name} for name, rank in layer_ids.items()],
        )
        conn.execute(
            insert(schema.tables),
            [
                {
                    "id": t.id,
                    "name": t.name,
                    "description": t.description,
                    "layer_id": layer_ids[t.layer],
                }
                for t in snapshot.tables
            ],
        )
        conn.execute(
            insert(schema.columns),
            [
                {
                    "id": c.id,
                    "name": c.name,
                    "data_type": c.data_type,
                    "is_key": c.is_key,
                    "is_nullable": c.is_nullable,
                    "table_id": c.table_id,
                    "layer_id": layer_ids[c.layer],
                }
                for c in snapshot.columns
            ],
        )
        conn.execute(
            insert(schema.transformations),
            [
                {
                    "id": t.id,
                    "name": t.name,
                    "description": t.description,
                    "script": t.script,
                    "transformation_type": t.transformation_type,
                    "status": t.status,
                    "created_at": t.created_at,
                    "source_table_id": t.source.id,
                    "target_table_id": t.target.id,
                }
                for t in snapshot.transformations
            ],
        )
        conn.execute(
            insert(schema.table_relationships),
            [
                {
                    "id": r.id,
                    "relationship_type": r.relationship_type,
                    "description": r.description,
                    "confidence_score": r.confidence_score,
                    "source_table_id": r.source.id,
                    "target_table_id": r.target.id,
                }
                for r in snapshot.relationships
            ],
        )
    engine.dispose()


@pytest.fixture
def snapshot() -> StoreSnapshot:
    return build_snapshot()


@pytest.fixture
def memory_store(snapshot) -> MemoryStore:
    return MemoryStore(snapshot)


@pytest.fixture
def sqlite_url(tmp_path: Path, snapshot) -> str:
    """File-backed SQLite database (shared by the column-count worker threads)."""
    url = f"sqlite:///{tmp_path / 'lineage.db'}"
    populate_database(url, snapshot)
    return url


@pytest.fixture
def sql_store(sqlite_url) -> SqlStore:
    store = SqlStore()
    store.configure({"database_url": sqlite_url})
    return store


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Run a test against both store adapters."""
    if request.param == "memory":
        return request.getfixturevalue("memory_store")
    return request.getfixturevalue("sql_store")
