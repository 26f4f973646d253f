"""Tests for free-text search and catalog browsing."""

import pytest
from pydantic import ValidationError

from medallion.lookup.catalog import CatalogBrowser
from medallion.lookup.search import SearchEngine
from medallion.models import ColumnsRequest, SearchRequest, TablesRequest


class TestSearchEngine:
    """Tests for SearchEngine.search."""

    def test_cust_tables(self, store):
        response = SearchEngine(store).search(SearchRequest(q="cust", type="tables"))
        assert [t.name for t in response.results.tables] == ["customer_raw"]
        assert response.results.columns == []
        assert response.results.transformations == []
        assert response.results.total == 1
        assert response.suggestions.tables == ["customer_raw"]
        assert response.suggestions.layers == ["bronze"]
        assert response.query == "cust"

    def test_all_types(self, store):
        response = SearchEngine(store).search(SearchRequest(q="order"))
        results = response.results
        assert [t.name for t in results.tables] == ["orders", "orders_agg", "orders_clean"]
        assert [c.name for c in results.columns] == ["order_id", "order_id"]
        assert [t.name for t in results.transformations] == [
            "aggregate_orders",
            "clean_orders",
            "enrich_orders",
        ]
        assert results.total == 8

    def test_total_is_sum_of_lists(self, store):
        results = SearchEngine(store).search(SearchRequest(q="raw")).results
        assert results.total == (
            len(results.tables) + len(results.columns) + len(results.transformations)
        )

    def test_limit_per_type(self, store):
        response = SearchEngine(store).search(SearchRequest(q="order", limit=1))
        assert len(response.results.tables) == 1
        assert len(response.results.columns) == 1
        assert len(response.results.transformations) == 1

    def test_suggestions_capped(self, store):
        """Descriptions match too: "Raw CRM export" brings in customer_raw."""
        response = SearchEngine(store).search(SearchRequest(q="or", type="tables"))
        assert [t.name for t in response.results.tables] == [
            "customer_raw",
            "orders",
            "orders_agg",
            "orders_clean",
        ]
        assert response.suggestions.tables == ["customer_raw", "orders", "orders_agg"]
        assert response.suggestions.layers == ["bronze", "gold", "silver"]

    def test_short_query_rejected(self):
        with pytest.raises(ValidationError):
            SearchRequest(q="c")

    @pytest.mark.parametrize("limit", [0, -1])
    def test_limit_below_one_rejected(self, limit):
        with pytest.raises(ValidationError):
            SearchRequest(q="or", limit=limit)


class TestCatalogBrowser:
    """Tests for CatalogBrowser."""

    def test_tables_by_layer(self, store):
        response = CatalogBrowser(store).tables(TablesRequest(layer="silver"))
        assert [t.name for t in response.tables] == ["loop_a", "orders_clean"]

    def test_all_tables(self, store):
        assert len(CatalogBrowser(store).tables(TablesRequest()).tables) == 7

    def test_columns(self, store):
        response = CatalogBrowser(store).columns(
            ColumnsRequest(table="orders", layer="bronze")
        )
        assert [c.name for c in response.columns] == ["amount", "customer_id", "order_id"]
        assert response.total_columns == 3
        assert response.table_name == "orders"
        assert response.layer_name == "bronze"

    def test_columns_unknown_table(self, store):
        response = CatalogBrowser(store).columns(
            ColumnsRequest(table="orders", layer="gold")
        )
        assert response.columns == []
        assert response.total_columns == 0
