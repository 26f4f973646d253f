"""Tests for layered diagram formatters."""

import pytest

from medallion.graph.diagram_formatters import (
    DotFormatter,
    MermaidFormatter,
    MermaidMarkdownFormatter,
    format_diagram,
    layer_title,
    node_id,
)
from medallion.graph.models import GraphSummary, LineageEdge, LineageGraph, LineageNode


@pytest.fixture
def orders_graph():
    """The orders chain as assembled with metadata."""
    nodes = [
        LineageNode(
            id=1,
            name="orders",
            layer="bronze",
            layer_id=1,
            depth=0,
            column_count=3,
            description="Raw order events",
            is_root=True,
        ),
        LineageNode(
            id=2,
            name="orders_clean",
            layer="silver",
            layer_id=2,
            depth=1,
            column_count=2,
            description="orders_clean table in silver layer",
        ),
        LineageNode(
            id=3,
            name="orders_agg",
            layer="gold",
            layer_id=3,
            depth=2,
            column_count=1,
            description="Daily order totals",
            is_leaf=True,
        ),
    ]
    edges = [
        LineageEdge(
            id=1,
            source_id=1,
            target_id=2,
            source="orders",
            target="orders_clean",
            source_layer="bronze",
            target_layer="silver",
            kind="cleansing",
            depth=1,
        ),
        LineageEdge(
            id=2,
            source_id=2,
            target_id=3,
            source="orders_clean",
            target="orders_agg",
            source_layer="silver",
            target_layer="gold",
            kind="aggregation",
            depth=2,
        ),
    ]
    summary = GraphSummary(
        total_nodes=3, total_edges=2, max_depth=2, layers=["bronze", "silver", "gold"]
    )
    return LineageGraph(nodes=nodes, edges=edges, summary=summary)


EXPECTED_MERMAID = """graph LR

    subgraph "Bronze Layer - Raw Data"
        BRONZE_orders["orders<br/>3 columns<br/>Raw order events"]
    end

    subgraph "Silver Layer - Cleansed Data"
        SILVER_orders_clean["orders_clean<br/>2 columns<br/>orders_clean table in silver layer"]
    end

    subgraph "Gold Layer - Business Ready"
        GOLD_orders_agg["orders_agg<br/>1 columns<br/>Daily order totals"]
    end

    BRONZE_orders -->|cleansing| SILVER_orders_clean
    SILVER_orders_clean -->|aggregation| GOLD_orders_agg

    %% Layer Styling
    classDef bronze fill:#fff3e0,stroke:#e65100,stroke-width:2px,color:#000
    classDef silver fill:#f3e5f5,stroke:#4a148c,stroke-width:2px,color:#000
    classDef gold fill:#e8f5e8,stroke:#1b5e20,stroke-width:2px,color:#000

    class BRONZE_orders bronze
    class SILVER_orders_clean silver
    class GOLD_orders_agg gold
"""


class TestMermaidFormatter:
    """Tests for MermaidFormatter."""

    def test_exact_output(self, orders_graph):
        assert MermaidFormatter.format_layered_graph(orders_graph) == EXPECTED_MERMAID

    def test_deterministic(self, orders_graph):
        copy = LineageGraph.model_validate_json(orders_graph.model_dump_json())
        assert MermaidFormatter.format_layered_graph(
            orders_graph
        ) == MermaidFormatter.format_layered_graph(copy)

    def test_subgraph_and_connection_counts(self, orders_graph):
        text = MermaidFormatter.format_layered_graph(orders_graph)
        assert text.count("subgraph ") == 3
        assert text.count("-->|") == 2

    def test_empty_graph_has_only_styling(self):
        text = MermaidFormatter.format_layered_graph(LineageGraph())
        assert text.startswith("graph LR\n\n\n    %% Layer Styling\n")
        assert "subgraph" not in text
        assert "class " not in text.replace("classDef", "")

    def test_quotes_escaped_in_labels(self):
        node = LineageNode(
            id=1, name="t", layer="bronze", layer_id=1, depth=0, description='a "b"'
        )
        text = MermaidFormatter.format_layered_graph(LineageGraph(nodes=[node]))
        assert 'BRONZE_t["t<br/>a #quot;b#quot;"]' in text

    def test_pipes_and_newlines_in_labels(self):
        nodes = [
            LineageNode(
                id=1, name="a", layer="bronze", layer_id=1, depth=0, description="x|y\nz"
            ),
            LineageNode(id=2, name="b", layer="silver", layer_id=2, depth=1),
        ]
        edge = LineageEdge(
            id=1,
            source_id=1,
            target_id=2,
            source="a",
            target="b",
            source_layer="bronze",
            target_layer="silver",
            kind="split|merge\nstep",
            depth=1,
        )
        text = MermaidFormatter.format_layered_graph(LineageGraph(nodes=nodes, edges=[edge]))
        assert 'BRONZE_a["a<br/>x#124;y z"]' in text
        assert "BRONZE_a -->|split#124;merge step| SILVER_b\n" in text

    def test_colliding_ids_disambiguated(self):
        nodes = [
            LineageNode(id=1, name="order-items", layer="silver", layer_id=2, depth=0),
            LineageNode(id=2, name="order_items", layer="silver", layer_id=2, depth=1),
        ]
        edge = LineageEdge(
            id=1,
            source_id=1,
            target_id=2,
            source="order-items",
            target="order_items",
            source_layer="silver",
            target_layer="silver",
            kind="copy",
            depth=1,
        )
        graph = LineageGraph(nodes=nodes, edges=[edge])
        text = MermaidFormatter.format_layered_graph(graph)
        assert 'SILVER_order_items["order-items"]' in text
        assert 'SILVER_order_items_2["order_items"]' in text
        assert "SILVER_order_items -->|copy| SILVER_order_items_2" in text
        assert "class SILVER_order_items_2 silver" in text
        dot = DotFormatter.format_layered_graph(graph)
        assert '"SILVER_order_items" -> "SILVER_order_items_2"' in dot

    def test_node_without_metadata_shows_name_only(self):
        node = LineageNode(id=1, name="t", layer="gold", layer_id=3, depth=0)
        text = MermaidFormatter.format_layered_graph(LineageGraph(nodes=[node]))
        assert '        GOLD_t["t"]\n' in text


class TestOtherFormats:
    """Tests for markdown and DOT output."""

    def test_markdown_fence(self, orders_graph):
        text = MermaidMarkdownFormatter.format_layered_graph(orders_graph)
        assert text == f"```mermaid\n{EXPECTED_MERMAID}```"

    def test_dot_clusters(self, orders_graph):
        text = DotFormatter.format_layered_graph(orders_graph)
        assert text.startswith("digraph lineage {")
        assert text.endswith("}")
        assert "subgraph cluster_bronze {" in text
        assert 'label="Gold Layer - Business Ready";' in text
        assert '"BRONZE_orders" -> "SILVER_orders_clean" [label="cleansing"];' in text

    def test_format_diagram_dispatch(self, orders_graph):
        assert format_diagram(orders_graph) == EXPECTED_MERMAID
        assert format_diagram(orders_graph, "dot").startswith("digraph")

    def test_format_diagram_unknown(self, orders_graph):
        with pytest.raises(ValueError, match="Invalid diagram format"):
            format_diagram(orders_graph, "svg")


class TestHelpers:
    """Tests for identifier and title helpers."""

    def test_node_id(self):
        assert node_id("silver", "orders_clean") == "SILVER_orders_clean"
        assert node_id("gold", "sales.v2") == "GOLD_sales_v2"

    def test_layer_title(self):
        assert layer_title("bronze") == "Bronze Layer - Raw Data"
        assert layer_title("platinum") == "Platinum Layer"
