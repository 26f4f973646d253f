"""Lineage operations exposed to the CLI and other callers.

Every operation takes the store adapter explicitly, validates its parameters
into a request model and returns a response model. Invalid parameters raise
``RequestValidationError`` before the store is touched; store failures are
logged and reported through the response's ``error`` field with empty data.
"""

import logging
from typing import Optional

from medallion.global_models import Direction, EdgeKind, Layer
from medallion.graph.assembler import GraphAssembler, ordered_layers
from medallion.graph.diagram_formatters import MermaidFormatter
from medallion.graph.traversal import GraphTraverser
from medallion.lookup import (
    CatalogBrowser,
    RelationshipLookup,
    SearchEngine,
    TransformationLookup,
)
from medallion.models import (
    DEFAULT_SEARCH_LIMIT,
    ColumnsRequest,
    ColumnsResponse,
    DatabaseHealth,
    FlowRequest,
    FlowResponse,
    HealthResponse,
    LineageChainRequest,
    LineageChainResponse,
    PingResponse,
    RelationshipRequest,
    RelationshipResponse,
    SearchRequest,
    SearchResponse,
    TablesRequest,
    TablesResponse,
    TransformationRequest,
    TransformationResponse,
    parse_request,
)
from medallion.store.base import LineageStore, StoreError

logger = logging.getLogger(__name__)

DEFAULT_LINEAGE_DEPTH = 3
DEFAULT_FLOW_DEPTH = 5
DEFAULT_MAX_WORKERS = 8


def _log_failure(operation: str, request: object, error: StoreError) -> None:
    params = request.model_dump(exclude_none=True, mode="json")
    logger.exception("%s failed for %s: %s", operation, params, error)


def resolve_lineage_chain(
    store: LineageStore,
    table_name: str,
    layer: str,
    direction: str = Direction.BOTH.value,
    max_depth: int = DEFAULT_LINEAGE_DEPTH,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> LineageChainResponse:
    """
    Resolve the transformation chain around one table as a layered diagram.

    Args:
        store: Store adapter to query
        table_name: Name of the selected table
        layer: Layer of the selected table
        direction: upstream, downstream or both
        max_depth: Maximum number of transformation hops
        max_workers: Upper bound on concurrent column-count lookups

    Returns:
        LineageChainResponse; an unknown table gives an empty graph

    Raises:
        RequestValidationError: If the parameters are invalid
    """
    request = parse_request(
        LineageChainRequest,
        table_name=table_name,
        layer=layer,
        direction=direction,
        max_depth=max_depth,
    )
    empty = LineageChainResponse(
        selected_table=request.table_name, selected_layer=request.layer.value
    )
    try:
        seed = store.find_table(request.table_name, request.layer.value)
        if seed is None:
            logger.debug(
                "Table %s not found in %s layer", request.table_name, request.layer.value
            )
            return empty

        traversal = GraphTraverser(store, EdgeKind.TRANSFORMATION).traverse(
            [seed], request.max_depth, direction=request.direction
        )
        graph = GraphAssembler(store, max_workers=max_workers).assemble(
            traversal, with_metadata=True
        )
    except StoreError as e:
        _log_failure("Lineage chain", request, e)
        empty.error = str(e)
        return empty

    return LineageChainResponse(
        nodes=graph.nodes,
        edges=graph.edges,
        mermaid_syntax=MermaidFormatter.format_layered_graph(graph),
        selected_table=request.table_name,
        selected_layer=request.layer.value,
        total_depth=graph.summary.max_depth,
        layers_involved=ordered_layers(graph.nodes),
    )


def resolve_full_flow(
    store: LineageStore,
    start_table: Optional[str] = None,
    end_table: Optional[str] = None,
    max_depth: int = DEFAULT_FLOW_DEPTH,
) -> FlowResponse:
    """
    Resolve the downstream relationship flow of a table, or of every bronze table.

    Args:
        store: Store adapter to query
        start_table: Name of the starting table (all tables with that name)
        end_table: Table that may only be entered at exactly max_depth
        max_depth: Maximum number of relationship hops

    Returns:
        FlowResponse with nodes, edges and summary statistics

    Raises:
        RequestValidationError: If the parameters are invalid
    """
    request = parse_request(
        FlowRequest, start_table=start_table, end_table=end_table, max_depth=max_depth
    )
    try:
        if request.start_table:
            seeds = store.find_tables(request.start_table)
        else:
            seeds = store.list_tables(Layer.BRONZE.value)
        traversal = GraphTraverser(store, EdgeKind.RELATIONSHIP).traverse(
            seeds,
            request.max_depth,
            direction=Direction.DOWNSTREAM,
            end_table=request.end_table,
        )
    except StoreError as e:
        _log_failure("Full flow", request, e)
        return FlowResponse(error=str(e))

    if traversal.is_empty:
        logger.debug("No seed tables for flow from %s", request.start_table or "bronze")
    graph = GraphAssembler().assemble(traversal)
    return FlowResponse(nodes=graph.nodes, edges=graph.edges, summary=graph.summary)


def lookup_relationships(
    store: LineageStore,
    table_id: Optional[int] = None,
    table_name: Optional[str] = None,
    layer: Optional[str] = None,
    direction: str = Direction.BOTH.value,
) -> RelationshipResponse:
    """Relationships touching a table, labelled upstream or downstream.

    Raises:
        RequestValidationError: If the parameters are invalid
    """
    request = parse_request(
        RelationshipRequest,
        table_id=table_id,
        table_name=table_name,
        layer=layer,
        direction=direction,
    )
    try:
        return RelationshipLookup(store).lookup(request)
    except StoreError as e:
        _log_failure("Relationship lookup", request, e)
        return RelationshipResponse(error=str(e))


def lookup_transformations(
    store: LineageStore,
    table_name: Optional[str] = None,
    table_id: Optional[int] = None,
    source_layer: Optional[str] = None,
    target_layer: Optional[str] = None,
    direction: str = Direction.BOTH.value,
) -> TransformationResponse:
    """Transformations of a table, or between two layers.

    A table (by name or id) takes precedence over a layer pair.

    Raises:
        RequestValidationError: If neither a table nor both layers are given
    """
    request = parse_request(
        TransformationRequest,
        table_name=table_name,
        table_id=table_id,
        source_layer=source_layer,
        target_layer=target_layer,
        direction=direction,
    )
    query = request.to_query()
    try:
        return TransformationLookup(store).lookup(query)
    except StoreError as e:
        _log_failure("Transformation lookup", request, e)
        return TransformationResponse(error=str(e))


def search(
    store: LineageStore,
    q: str,
    type: str = "all",
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> SearchResponse:
    """Case-insensitive search over tables, columns and transformations.

    Raises:
        RequestValidationError: If the query is shorter than two characters,
            the type is unknown or the limit is below one
    """
    request = parse_request(SearchRequest, q=q, type=type, limit=limit)
    try:
        return SearchEngine(store).search(request)
    except StoreError as e:
        _log_failure("Search", request, e)
        return SearchResponse(query=request.q, error=str(e))


def list_tables(store: LineageStore, layer: Optional[str] = None) -> TablesResponse:
    request = parse_request(TablesRequest, layer=layer)
    try:
        return CatalogBrowser(store).tables(request)
    except StoreError as e:
        _log_failure("Table listing", request, e)
        return TablesResponse(error=str(e))


def list_columns(store: LineageStore, table: str, layer: str) -> ColumnsResponse:
    request = parse_request(ColumnsRequest, table=table, layer=layer)
    try:
        return CatalogBrowser(store).columns(request)
    except StoreError as e:
        _log_failure("Column listing", request, e)
        return ColumnsResponse(
            table_name=request.table, layer_name=request.layer.value, error=str(e)
        )


def ping() -> PingResponse:
    """Liveness check that never touches the store."""
    return PingResponse()


def health(store: LineageStore) -> HealthResponse:
    """Check that the store answers a trivial query."""
    try:
        store.ping()
    except StoreError as e:
        logger.exception("Health check failed: %s", e)
        return HealthResponse(ok=False, database=DatabaseHealth(connected=False), error=str(e))
    return HealthResponse(ok=True, database=DatabaseHealth(connected=True))
