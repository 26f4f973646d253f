"""Bounded breadth-first traversal over relationship and transformation edges."""

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from medallion.global_models import Direction, EdgeKind
from medallion.graph.models import ReachedTable, TraversalResult, TraversedEdge
from medallion.store.base import LineageStore
from medallion.store.records import EdgeRecord, TableRecord

logger = logging.getLogger(__name__)


class GraphTraverser:
    """Walk the lineage edges of a store outward from one or more seed tables.

    The walk is level-synchronous: every level issues one store query per
    direction for the whole frontier. A table is visited at most once, at the
    depth it was first reached, so edges always connect a table at depth ``d``
    to a table first reached at depth ``d + 1``.
    """

    def __init__(self, store: LineageStore, kind: EdgeKind):
        """
        Initialize the traverser.

        Args:
            store: Store adapter to query
            kind: Which edges to follow (relationships or transformations)
        """
        self.store = store
        self.kind = kind

    def traverse(
        self,
        seeds: Sequence[TableRecord],
        max_depth: int,
        direction: Direction = Direction.DOWNSTREAM,
        end_table: Optional[str] = None,
    ) -> TraversalResult:
        """
        Collect the tables and edges reachable from the seeds.

        Args:
            seeds: Starting tables (depth 0). An empty sequence yields an
                empty result.
            max_depth: Maximum number of hops; deeper tables are silently
                left out.
            direction: ``downstream`` follows edges out of a table, ``upstream``
                follows edges into it, ``both`` expands the seeds both ways and
                keeps each reached table going in the direction it was
                reached from.
            end_table: Name of a table that may only be entered at exactly
                ``max_depth``.

        Returns:
            TraversalResult with tables and edges in discovery order

        Raises:
            ValueError: If max_depth is negative
            StoreError: If a store query fails (no partial result is returned)
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")

        result = TraversalResult(max_depth=max_depth)
        visited: Set[int] = set()
        for seed in seeds:
            if seed.id in visited:
                continue
            visited.add(seed.id)
            result.seeds.append(seed)
            result.tables.append(ReachedTable(table=seed, depth=0))

        seed_ids = [seed.id for seed in result.seeds]
        downstream = seed_ids if direction != Direction.UPSTREAM else []
        upstream = seed_ids if direction != Direction.DOWNSTREAM else []
        seen_edges: Set[Tuple[int, int, str]] = set()

        depth = 0
        while depth < max_depth and (downstream or upstream):
            next_depth = depth + 1
            candidates: List[Tuple[Direction, EdgeRecord, TableRecord]] = []
            if downstream:
                for edge in self.store.edges_from(self.kind, downstream):
                    candidates.append((Direction.DOWNSTREAM, edge, edge.target))
            if upstream:
                for edge in self.store.edges_to(self.kind, upstream):
                    candidates.append((Direction.UPSTREAM, edge, edge.source))

            reached: Dict[int, Direction] = {}
            for hop_direction, edge, table in candidates:
                if table.id in visited:
                    continue
                if (
                    end_table is not None
                    and table.name == end_table
                    and next_depth < max_depth
                ):
                    continue

                key = (edge.source.id, edge.target.id, edge.label)
                if key in seen_edges:
                    continue
                seen_edges.add(key)
                result.edges.append(TraversedEdge(edge=edge, depth=next_depth))

                if table.id not in reached:
                    reached[table.id] = hop_direction
                    result.tables.append(ReachedTable(table=table, depth=next_depth))

            logger.debug(
                "Traversal level %d: %d candidate edges, %d new tables",
                next_depth,
                len(candidates),
                len(reached),
            )

            visited.update(reached)
            downstream = [t for t, d in reached.items() if d == Direction.DOWNSTREAM]
            upstream = [t for t, d in reached.items() if d == Direction.UPSTREAM]
            depth = next_depth

        return result
