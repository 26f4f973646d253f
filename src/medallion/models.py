"""Request and response models for lineage operations.

Responses are JSON-serializable and always carry their full shape; a failed
store lookup fills ``error`` and leaves the data empty.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from medallion.global_models import Direction, Layer, SearchType
from medallion.graph.models import GraphSummary, LineageEdge, LineageNode

MIN_QUERY_LENGTH = 2
DEFAULT_SEARCH_LIMIT = 10

RequestT = TypeVar("RequestT", bound=BaseModel)


class RequestValidationError(ValueError):
    """Raised when a request is rejected before reaching the store."""

    pass


def parse_request(model: Type[RequestT], **params: object) -> RequestT:
    """Validate request parameters into a request model.

    Args:
        model: Request model class
        **params: Raw request parameters

    Returns:
        Validated request model

    Raises:
        RequestValidationError: If the parameters are missing or invalid
    """
    try:
        return model(**params)
    except ValidationError as e:
        messages = []
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"])
            messages.append(f"{location}: {err['msg']}" if location else err["msg"])
        raise RequestValidationError("; ".join(messages)) from e


# Requests


class LineageChainRequest(BaseModel):
    """Resolve the transformation chain around one table."""

    table_name: str = Field(..., min_length=1)
    layer: Layer
    direction: Direction = Direction.BOTH
    max_depth: int = Field(default=3, ge=0)


class FlowRequest(BaseModel):
    """Resolve the relationship flow from a table (or all bronze tables)."""

    start_table: Optional[str] = None
    end_table: Optional[str] = None
    max_depth: int = Field(default=5, ge=1)


class RelationshipRequest(BaseModel):
    """Look up the relationships touching a table."""

    table_id: Optional[int] = None
    table_name: Optional[str] = None
    layer: Optional[Layer] = None
    direction: Direction = Direction.BOTH


class TableTransformationQuery(BaseModel):
    """Transformations reading from or writing to one table."""

    mode: Literal["table"] = "table"
    table_name: Optional[str] = None
    table_id: Optional[int] = None
    direction: Direction = Direction.BOTH

    @model_validator(mode="after")
    def _require_table(self) -> "TableTransformationQuery":
        if not self.table_name and self.table_id is None:
            raise ValueError("table_name or table_id is required")
        return self


class LayerPairTransformationQuery(BaseModel):
    """Transformations from one layer into another."""

    mode: Literal["layer_pair"] = "layer_pair"
    source_layer: Layer
    target_layer: Layer


TransformationQuery = Annotated[
    Union[TableTransformationQuery, LayerPairTransformationQuery],
    Field(discriminator="mode"),
]


class TransformationRequest(BaseModel):
    """Flat transformation request as received from the CLI or a client."""

    table_name: Optional[str] = None
    table_id: Optional[int] = None
    source_layer: Optional[Layer] = None
    target_layer: Optional[Layer] = None
    direction: Direction = Direction.BOTH

    def to_query(
        self,
    ) -> Union[TableTransformationQuery, LayerPairTransformationQuery]:
        """Pick the query mode: table-scoped wins over layer pair.

        Raises:
            RequestValidationError: If neither a table nor both layers are given
        """
        if self.table_name or self.table_id is not None:
            return TableTransformationQuery(
                table_name=self.table_name,
                table_id=self.table_id,
                direction=self.direction,
            )
        if self.source_layer and self.target_layer:
            return LayerPairTransformationQuery(
                source_layer=self.source_layer, target_layer=self.target_layer
            )
        raise RequestValidationError(
            "Either table_name/table_id or source_layer/target_layer must be provided"
        )


class SearchRequest(BaseModel):
    """Free-text search over tables, columns and transformations."""

    q: str = Field(..., min_length=MIN_QUERY_LENGTH)
    type: SearchType = SearchType.ALL
    limit: int = Field(default=DEFAULT_SEARCH_LIMIT, ge=1)


class TablesRequest(BaseModel):
    layer: Optional[Layer] = None


class ColumnsRequest(BaseModel):
    table: str = Field(..., min_length=1)
    layer: Layer


# Responses


class ApiResponse(BaseModel):
    """Base for response shapes carrying an optional error message."""

    error: Optional[str] = None

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize to JSON, leaving ``error`` out when it is unset."""
        exclude = {"error"} if self.error is None else None
        return self.model_dump_json(indent=indent, exclude=exclude)


class LineageChainResponse(ApiResponse):
    nodes: List[LineageNode] = Field(default_factory=list)
    edges: List[LineageEdge] = Field(default_factory=list)
    mermaid_syntax: str = ""
    selected_table: str = ""
    selected_layer: str = ""
    total_depth: int = 0
    layers_involved: List[str] = Field(default_factory=list)


class FlowResponse(ApiResponse):
    nodes: List[LineageNode] = Field(default_factory=list)
    edges: List[LineageEdge] = Field(default_factory=list)
    summary: GraphSummary = Field(default_factory=GraphSummary)


class RelationshipItem(BaseModel):
    id: int
    relationship_type: str
    description: Optional[str] = None
    confidence_score: float
    source_table: str
    source_table_id: int
    source_layer: str
    target_table: str
    target_table_id: int
    target_layer: str
    direction: str = Field(..., description="upstream, downstream or both")


class RelationshipSummary(BaseModel):
    total: int = 0
    upstream: int = 0
    downstream: int = 0
    avg_confidence: float = 0.0


class RelationshipResponse(ApiResponse):
    relationships: List[RelationshipItem] = Field(default_factory=list)
    summary: RelationshipSummary = Field(default_factory=RelationshipSummary)


class TransformationItem(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    source_table: str
    target_table: str
    source_layer: str
    target_layer: str
    transformation_type: str
    confidence_score: float = 1.0
    created_at: datetime
    script: Optional[str] = None
    status: Optional[str] = None


class TransformationSummary(BaseModel):
    total: int = 0
    table_name: str = ""
    layers_involved: List[str] = Field(default_factory=list)
    avg_confidence: float = 0.0


class TransformationResponse(ApiResponse):
    transformations: List[TransformationItem] = Field(default_factory=list)
    summary: TransformationSummary = Field(default_factory=TransformationSummary)


class SearchTableItem(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    layer: str


class SearchColumnItem(BaseModel):
    id: int
    name: str
    data_type: str
    table_name: str
    layer: str


class SearchTransformationItem(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    transformation_type: str
    source_table: str
    target_table: str


class SearchResults(BaseModel):
    tables: List[SearchTableItem] = Field(default_factory=list)
    columns: List[SearchColumnItem] = Field(default_factory=list)
    transformations: List[SearchTransformationItem] = Field(default_factory=list)
    total: int = 0


class SearchSuggestions(BaseModel):
    tables: List[str] = Field(default_factory=list)
    layers: List[str] = Field(default_factory=list)


class SearchResponse(ApiResponse):
    query: str = ""
    results: SearchResults = Field(default_factory=SearchResults)
    suggestions: SearchSuggestions = Field(default_factory=SearchSuggestions)


class TableItem(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    layer: str


class TablesResponse(ApiResponse):
    tables: List[TableItem] = Field(default_factory=list)


class ColumnItem(BaseModel):
    id: int
    name: str
    data_type: str
    is_key: bool
    is_nullable: bool


class ColumnsResponse(ApiResponse):
    columns: List[ColumnItem] = Field(default_factory=list)
    table_name: str = ""
    layer_name: str = ""
    total_columns: int = 0


class PingResponse(BaseModel):
    success: bool = True
    message: str = "Lineage API is reachable"


class DatabaseHealth(BaseModel):
    connected: bool = False


class HealthResponse(ApiResponse):
    ok: bool = False
    database: DatabaseHealth = Field(default_factory=DatabaseHealth)
