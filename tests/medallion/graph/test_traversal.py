"""Tests for bounded breadth-first lineage traversal."""

import pytest

from medallion.global_models import Direction, EdgeKind
from medallion.graph.traversal import GraphTraverser
from medallion.store.base import StoreError


def _depths(result):
    return {reached.table.name: reached.depth for reached in result.tables}


class TestTraversalBasics:
    """Tests for GraphTraverser.traverse."""

    def test_downstream_chain(self, store):
        seed = store.find_table("orders", "bronze")
        result = GraphTraverser(store, EdgeKind.TRANSFORMATION).traverse([seed], 3)
        assert _depths(result) == {"orders": 0, "orders_clean": 1, "orders_agg": 2}
        assert [(t.edge.label, t.depth) for t in result.edges] == [
            ("cleansing", 1),
            ("aggregation", 2),
        ]

    def test_upstream(self, store):
        seed = store.find_table("orders_agg", "gold")
        result = GraphTraverser(store, EdgeKind.TRANSFORMATION).traverse(
            [seed], 3, direction=Direction.UPSTREAM
        )
        assert _depths(result) == {
            "orders_agg": 0,
            "orders_clean": 1,
            "orders": 2,
            "product_raw": 2,
        }

    def test_both_keeps_reached_direction(self, store):
        """Tables reached upstream are not expanded downstream again."""
        seed = store.find_table("orders", "bronze")
        result = GraphTraverser(store, EdgeKind.TRANSFORMATION).traverse(
            [seed], 3, direction=Direction.BOTH
        )
        assert "product_raw" not in _depths(result)

    def test_both_from_middle(self, store):
        seed = store.find_table("orders_clean", "silver")
        result = GraphTraverser(store, EdgeKind.TRANSFORMATION).traverse(
            [seed], 1, direction=Direction.BOTH
        )
        assert _depths(result) == {
            "orders_clean": 0,
            "orders_agg": 1,
            "orders": 1,
            "product_raw": 1,
        }
        assert len(result.edges) == 3

    def test_zero_depth_returns_seed_only(self, store):
        seed = store.find_table("orders", "bronze")
        result = GraphTraverser(store, EdgeKind.RELATIONSHIP).traverse([seed], 0)
        assert _depths(result) == {"orders": 0}
        assert result.edges == []

    def test_negative_depth_rejected(self, memory_store):
        with pytest.raises(ValueError, match="max_depth"):
            GraphTraverser(memory_store, EdgeKind.RELATIONSHIP).traverse([], -1)

    def test_no_seeds(self, memory_store):
        result = GraphTraverser(memory_store, EdgeKind.RELATIONSHIP).traverse([], 5)
        assert result.is_empty
        assert result.tables == []

    def test_duplicate_seeds_collapsed(self, memory_store):
        seed = memory_store.find_table("orders", "bronze")
        result = GraphTraverser(memory_store, EdgeKind.RELATIONSHIP).traverse(
            [seed, seed], 1
        )
        assert [t.name for t in result.seeds] == ["orders"]


class TestTraversalProperties:
    """Invariants that hold for every traversal."""

    @pytest.mark.parametrize("max_depth", [1, 2, 3, 5])
    @pytest.mark.parametrize("direction", list(Direction))
    def test_depth_monotonic_and_bounded(self, memory_store, max_depth, direction):
        seeds = memory_store.list_tables("bronze")
        result = GraphTraverser(memory_store, EdgeKind.RELATIONSHIP).traverse(
            seeds, max_depth, direction=direction
        )
        depths = {reached.table.id: reached.depth for reached in result.tables}
        for seed in result.seeds:
            assert depths[seed.id] == 0
        for traversed in result.edges:
            edge = traversed.edge
            near, far = (
                (edge.source.id, edge.target.id)
                if depths[edge.target.id] == traversed.depth
                else (edge.target.id, edge.source.id)
            )
            assert depths[far] == traversed.depth
            assert depths[near] + 1 == depths[far]
        assert all(d <= max_depth for d in depths.values())

    def test_no_duplicate_tables(self, memory_store):
        """orders_clean is reachable from two bronze tables but listed once."""
        seeds = memory_store.list_tables("bronze")
        result = GraphTraverser(memory_store, EdgeKind.RELATIONSHIP).traverse(seeds, 5)
        ids = [reached.table.id for reached in result.tables]
        assert len(ids) == len(set(ids))
        assert len(result.edges) == 5

    def test_cycle_terminates(self, store):
        seed = store.find_table("loop_a", "silver")
        result = GraphTraverser(store, EdgeKind.RELATIONSHIP).traverse([seed], 50)
        assert _depths(result) == {"loop_a": 0, "loop_b": 1}
        assert len(result.edges) == 1


class TestEndTable:
    """Tests for the end-table rule."""

    def test_end_table_allowed_at_final_depth(self, store):
        seeds = store.find_tables("orders")
        result = GraphTraverser(store, EdgeKind.RELATIONSHIP).traverse(
            seeds, 2, end_table="orders_agg"
        )
        assert _depths(result)["orders_agg"] == 2

    def test_end_table_excluded_before_final_depth(self, store):
        seeds = store.find_tables("orders")
        result = GraphTraverser(store, EdgeKind.RELATIONSHIP).traverse(
            seeds, 3, end_table="orders_agg"
        )
        assert "orders_agg" not in _depths(result)


class TestTraversalErrors:
    """Store failures propagate without partial results."""

    def test_store_error_propagates(self, memory_store, mocker):
        mocker.patch.object(
            memory_store, "edges_from", side_effect=StoreError("connection lost")
        )
        seed = memory_store.find_table("orders", "bronze")
        with pytest.raises(StoreError, match="connection lost"):
            GraphTraverser(memory_store, EdgeKind.RELATIONSHIP).traverse([seed], 2)
