"""Tests for transformation lookups."""

from datetime import datetime

from medallion.lookup.transformations import TransformationLookup
from medallion.models import LayerPairTransformationQuery, TableTransformationQuery


class TestTableQuery:
    """Tests for table-scoped transformation queries."""

    def test_by_name(self, store):
        response = TransformationLookup(store).by_table(
            TableTransformationQuery(table_name="orders_clean")
        )
        names = [t.name for t in response.transformations]
        # bronze sources first (newest first), then the silver -> gold step
        assert names == ["enrich_orders", "clean_orders", "aggregate_orders"]
        summary = response.summary
        assert summary.total == 3
        assert summary.table_name == "orders_clean"
        assert summary.layers_involved == ["bronze", "silver", "gold"]
        assert summary.avg_confidence == 1.0

    def test_item_metadata(self, store):
        response = TransformationLookup(store).by_table(
            TableTransformationQuery(table_name="orders")
        )
        item = response.transformations[0]
        assert item.name == "clean_orders"
        assert item.source_layer == "bronze"
        assert item.target_layer == "silver"
        assert item.transformation_type == "cleansing"
        assert item.status == "active"
        assert item.script == "SELECT DISTINCT * FROM orders"
        assert item.created_at == datetime(2024, 1, 1, 9, 0)
        assert item.confidence_score == 1.0

    def test_by_id_upstream(self, store):
        response = TransformationLookup(store).by_table(
            TableTransformationQuery(table_id=2, direction="upstream")
        )
        assert [t.target_table for t in response.transformations] == [
            "orders_clean",
            "orders_clean",
        ]
        assert response.summary.table_name == "Table ID 2"

    def test_downstream(self, store):
        response = TransformationLookup(store).by_table(
            TableTransformationQuery(table_name="orders_clean", direction="downstream")
        )
        assert [t.name for t in response.transformations] == ["aggregate_orders"]

    def test_unknown_table(self, store):
        response = TransformationLookup(store).by_table(
            TableTransformationQuery(table_name="missing")
        )
        assert response.transformations == []
        assert response.summary.total == 0
        assert response.summary.avg_confidence == 0.0


class TestLayerPairQuery:
    """Tests for layer-pair transformation queries."""

    def test_bronze_to_silver_newest_first(self, store):
        response = TransformationLookup(store).by_layer_pair(
            LayerPairTransformationQuery(source_layer="bronze", target_layer="silver")
        )
        assert [t.name for t in response.transformations] == [
            "enrich_orders",
            "clean_orders",
        ]
        assert response.summary.table_name == "bronze → silver"
        assert response.summary.layers_involved == ["bronze", "silver"]

    def test_empty_pair(self, store):
        response = TransformationLookup(store).by_layer_pair(
            LayerPairTransformationQuery(source_layer="gold", target_layer="bronze")
        )
        assert response.transformations == []
        assert response.summary.total == 0


class TestDispatch:
    def test_lookup_dispatches_on_mode(self, memory_store, mocker):
        lookup = TransformationLookup(memory_store)
        by_table = mocker.spy(lookup, "by_table")
        by_pair = mocker.spy(lookup, "by_layer_pair")
        lookup.lookup(TableTransformationQuery(table_id=1))
        lookup.lookup(
            LayerPairTransformationQuery(source_layer="silver", target_layer="gold")
        )
        assert by_table.call_count == 1
        assert by_pair.call_count == 1
