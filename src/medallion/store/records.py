"""Pydantic records returned by lineage store adapters."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from medallion.global_models import EdgeKind


class TableRecord(BaseModel):
    """A warehouse table and the layer it belongs to."""

    id: int = Field(..., description="Stable table identifier")
    name: str = Field(..., description="Table name (unique within its layer)")
    description: Optional[str] = Field(None, description="Free-text description")
    layer: str = Field(..., description="Layer name (e.g. 'bronze')")
    layer_rank: int = Field(..., description="Layer ordering rank")


class ColumnRecord(BaseModel):
    """A column of a warehouse table."""

    id: int
    table_id: int
    table_name: str
    layer: str
    name: str
    data_type: str
    is_key: bool = False
    is_nullable: bool = True


class RelationshipRecord(BaseModel):
    """A typed, confidence-scored directed link between two tables."""

    id: int
    relationship_type: str
    description: Optional[str] = None
    confidence_score: float
    source: TableRecord
    target: TableRecord


class TransformationRecord(BaseModel):
    """A declared or executed transformation from one table to another."""

    id: int
    name: str
    description: Optional[str] = None
    transformation_type: str
    script: Optional[str] = None
    status: Optional[str] = None
    created_at: datetime
    source: TableRecord
    target: TableRecord


class EdgeRecord(BaseModel):
    """Either edge kind projected to the shape the traversal engine walks."""

    id: int
    kind: EdgeKind
    label: str = Field(..., description="Relationship or transformation type")
    confidence: float = 1.0
    source: TableRecord
    target: TableRecord

    @classmethod
    def from_relationship(cls, record: RelationshipRecord) -> "EdgeRecord":
        return cls(
            id=record.id,
            kind=EdgeKind.RELATIONSHIP,
            label=record.relationship_type,
            confidence=record.confidence_score,
            source=record.source,
            target=record.target,
        )

    @classmethod
    def from_transformation(cls, record: TransformationRecord) -> "EdgeRecord":
        return cls(
            id=record.id,
            kind=EdgeKind.TRANSFORMATION,
            label=record.transformation_type,
            source=record.source,
            target=record.target,
        )


class StoreSnapshot(BaseModel):
    """Serializable dump of a whole lineage store (used by the memory store)."""

    tables: List[TableRecord] = Field(default_factory=list)
    columns: List[ColumnRecord] = Field(default_factory=list)
    relationships: List[RelationshipRecord] = Field(default_factory=list)
    transformations: List[TransformationRecord] = Field(default_factory=list)
