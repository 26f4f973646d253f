"""Pydantic models for table-level lineage graphs."""

from typing import List, Optional

from pydantic import BaseModel, Field

from medallion.store.records import EdgeRecord, TableRecord


class LineageNode(BaseModel):
    """A table in a lineage graph, annotated with traversal context."""

    id: int = Field(..., description="Table identifier")
    name: str = Field(..., description="Table name")
    layer: str = Field(..., description="Layer name")
    layer_id: int = Field(..., description="Layer rank")
    depth: int = Field(..., description="Hops from the seed table (first reached)")
    type: str = Field(default="table", description="Node type")
    column_count: Optional[int] = Field(
        None, description="Number of columns (lineage chain only)"
    )
    description: Optional[str] = Field(None, description="Table description")
    is_root: bool = Field(
        default=False, description="True if no edge in the graph points to it"
    )
    is_leaf: bool = Field(
        default=False, description="True if no edge in the graph leaves it"
    )

    @classmethod
    def from_table(cls, table: TableRecord, depth: int) -> "LineageNode":
        """
        Create a LineageNode from a store table record.

        Args:
            table: The table record
            depth: Depth at which the traversal first reached the table

        Returns:
            LineageNode with the table's identity and description
        """
        return cls(
            id=table.id,
            name=table.name,
            layer=table.layer,
            layer_id=table.layer_rank,
            depth=depth,
            description=table.description,
        )


class LineageEdge(BaseModel):
    """A directed edge in a lineage graph."""

    id: int = Field(..., description="Relationship or transformation identifier")
    source_id: int
    target_id: int
    source: str = Field(..., description="Source table name")
    target: str = Field(..., description="Target table name")
    source_layer: str
    target_layer: str
    kind: str = Field(..., description="Relationship or transformation type")
    confidence: float = Field(default=1.0, description="Confidence score in [0, 1]")
    depth: int = Field(..., description="Depth of the table this edge reached")


class GraphSummary(BaseModel):
    """Aggregate statistics about a lineage graph."""

    total_nodes: int = 0
    total_edges: int = 0
    max_depth: int = 0
    layers: List[str] = Field(default_factory=list)


class LineageGraph(BaseModel):
    """Assembled lineage graph: unique table nodes and the edges between them."""

    nodes: List[LineageNode] = Field(default_factory=list)
    edges: List[LineageEdge] = Field(default_factory=list)
    summary: GraphSummary = Field(default_factory=GraphSummary)

    def get_node(self, table_id: int) -> Optional[LineageNode]:
        """
        Find a node by table id.

        Args:
            table_id: Table identifier to find

        Returns:
            LineageNode if found, None otherwise
        """
        for node in self.nodes:
            if node.id == table_id:
                return node
        return None


class TraversedEdge(BaseModel):
    """An edge used by the traversal, with the depth it was discovered at."""

    edge: EdgeRecord
    depth: int


class ReachedTable(BaseModel):
    """A table reached by the traversal at its first-reached depth."""

    table: TableRecord
    depth: int


class TraversalResult(BaseModel):
    """Raw output of a traversal, in discovery order."""

    seeds: List[TableRecord] = Field(default_factory=list)
    tables: List[ReachedTable] = Field(default_factory=list)
    edges: List[TraversedEdge] = Field(default_factory=list)
    max_depth: int = Field(..., description="Depth bound the traversal ran with")

    @property
    def is_empty(self) -> bool:
        return not self.seeds
