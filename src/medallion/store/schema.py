"""SQLAlchemy table definitions for the lineage metadata schema.

These mirror the tables maintained by the warehouse ingestion process. The
lineage core never writes to them; ``metadata.create_all`` is only used to set
up local databases for tests and demos.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

layers = Table(
    "layers",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False, unique=True),
)

tables = Table(
    "tables",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False),
    Column("description", Text),
    Column("layer_id", ForeignKey("layers.id"), nullable=False),
)

columns = Table(
    "columns",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False),
    Column("data_type", String, nullable=False),
    Column("is_key", Boolean, nullable=False, default=False),
    Column("is_nullable", Boolean, nullable=False, default=True),
    Column("table_id", ForeignKey("tables.id"), nullable=False),
    Column("layer_id", ForeignKey("layers.id"), nullable=False),
)

transformations = Table(
    "transformations",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False),
    Column("description", Text),
    Column("script", Text),
    Column("transformation_type", String, nullable=False),
    Column("status", String),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime),
    Column("source_table_id", ForeignKey("tables.id"), nullable=False),
    Column("target_table_id", ForeignKey("tables.id"), nullable=False),
)

table_relationships = Table(
    "table_relationships",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("relationship_type", String, nullable=False),
    Column("description", Text),
    Column("confidence_score", Float, nullable=False),
    Column("source_table_id", ForeignKey("tables.id"), nullable=False),
    Column("target_table_id", ForeignKey("tables.id"), nullable=False),
)
