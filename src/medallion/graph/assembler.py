"""Assemble traversal output into a canonical lineage graph."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence, Set, Tuple

import rustworkx as rx

from medallion.graph.models import (
    GraphSummary,
    LineageEdge,
    LineageGraph,
    LineageNode,
    TraversalResult,
)
from medallion.store.base import LineageStore

logger = logging.getLogger(__name__)


def fallback_description(name: str, layer: str) -> str:
    """Description used for tables the store has none for."""
    return f"{name} table in {layer} layer"


def ordered_layers(nodes: Sequence[LineageNode]) -> List[str]:
    """Distinct layers of the nodes, ordered by layer rank."""
    ranks: Dict[str, int] = {}
    for node in nodes:
        ranks.setdefault(node.layer, node.layer_id)
    return sorted(ranks, key=lambda layer: (ranks[layer], layer))


class GraphAssembler:
    """Build deduplicated node/edge graphs with summary statistics."""

    def __init__(self, store: Optional[LineageStore] = None, max_workers: int = 8):
        """
        Initialize the assembler.

        Args:
            store: Store used for per-node metadata lookups (column counts).
                Only required when assembling with metadata.
            max_workers: Upper bound on concurrent metadata lookups
        """
        self.store = store
        self.max_workers = max_workers

    def assemble(
        self, traversal: TraversalResult, with_metadata: bool = False
    ) -> LineageGraph:
        """
        Build a LineageGraph from a traversal result.

        Nodes are keyed by table id and keep the depth they were first seen
        at. Edges are deduplicated on (source, target, kind). Nodes are
        ordered by (layer rank, name); edges by (depth, confidence descending,
        id).

        Args:
            traversal: Raw traversal output
            with_metadata: Fetch column counts and fill in missing descriptions

        Returns:
            Assembled LineageGraph

        Raises:
            ValueError: If metadata is requested without a store
            StoreError: If a metadata lookup fails
        """
        nodes: Dict[int, LineageNode] = {}
        for reached in traversal.tables:
            if reached.table.id not in nodes:
                nodes[reached.table.id] = LineageNode.from_table(
                    reached.table, reached.depth
                )

        edges: List[LineageEdge] = []
        seen: Set[Tuple[int, int, str]] = set()
        for traversed in traversal.edges:
            edge = traversed.edge
            key = (edge.source.id, edge.target.id, edge.label)
            if key in seen:
                continue
            seen.add(key)
            edges.append(
                LineageEdge(
                    id=edge.id,
                    source_id=edge.source.id,
                    target_id=edge.target.id,
                    source=edge.source.name,
                    target=edge.target.name,
                    source_layer=edge.source.layer,
                    target_layer=edge.target.layer,
                    kind=str(edge.label),
                    confidence=float(edge.confidence),
                    depth=int(traversed.depth),
                )
            )
        edges.sort(key=lambda e: (e.depth, -e.confidence, e.id))

        ordered = sorted(nodes.values(), key=lambda n: (n.layer_id, n.name, n.id))

        if with_metadata:
            self._attach_metadata(ordered)

        self._mark_roots_and_leaves(ordered, edges)

        summary = GraphSummary(
            total_nodes=len(ordered),
            total_edges=len(edges),
            max_depth=max((n.depth for n in ordered), default=0),
            layers=ordered_layers(ordered),
        )
        logger.debug(
            "Assembled graph: %d nodes, %d edges, max depth %d",
            summary.total_nodes,
            summary.total_edges,
            summary.max_depth,
        )
        return LineageGraph(nodes=ordered, edges=edges, summary=summary)

    def _attach_metadata(self, nodes: List[LineageNode]) -> None:
        if self.store is None:
            raise ValueError("A store is required to fetch node metadata")

        counts = self._fetch_column_counts(self.store, [n.id for n in nodes])
        for node in nodes:
            node.column_count = counts.get(node.id, 0)
            if not node.description:
                node.description = fallback_description(node.name, node.layer)

    def _fetch_column_counts(
        self, store: LineageStore, table_ids: List[int]
    ) -> Dict[int, int]:
        """Look up column counts concurrently, one store query per table.

        The first failure cancels lookups that have not started yet and is
        re-raised.
        """
        if not table_ids:
            return {}

        workers = max(1, min(self.max_workers, len(table_ids)))
        executor = ThreadPoolExecutor(max_workers=workers)
        futures = {
            executor.submit(store.count_columns, table_id): table_id
            for table_id in table_ids
        }

        counts: Dict[int, int] = {}
        try:
            for future in as_completed(futures):
                counts[futures[future]] = future.result()
        except BaseException:
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)
        return counts

    @staticmethod
    def _mark_roots_and_leaves(
        nodes: List[LineageNode], edges: List[LineageEdge]
    ) -> None:
        rx_graph: rx.PyDiGraph = rx.PyDiGraph()
        node_map: Dict[int, int] = {}
        for node in nodes:
            node_map[node.id] = rx_graph.add_node(node.id)

        for edge in edges:
            source_idx = node_map.get(edge.source_id)
            target_idx = node_map.get(edge.target_id)
            if source_idx is not None and target_idx is not None:
                rx_graph.add_edge(source_idx, target_idx, edge.kind)

        for node in nodes:
            idx = node_map[node.id]
            node.is_root = rx_graph.in_degree(idx) == 0
            node.is_leaf = rx_graph.out_degree(idx) == 0
