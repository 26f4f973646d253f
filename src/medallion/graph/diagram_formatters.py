"""Diagram formatters for lineage graphs (Mermaid and DOT/Graphviz)."""

import re
from typing import Dict, List, Optional, Set, Tuple

from medallion.global_models import Layer
from medallion.graph.models import LineageEdge, LineageGraph, LineageNode

# Layer palette: (fill, stroke)
LAYER_STYLES = {
    Layer.BRONZE: ("#fff3e0", "#e65100"),
    Layer.SILVER: ("#f3e5f5", "#4a148c"),
    Layer.GOLD: ("#e8f5e8", "#1b5e20"),
}


def _sanitize_mermaid_id(identifier: str) -> str:
    """Sanitize an identifier for use as a Mermaid node ID.

    Replaces non-alphanumeric characters with underscores.

    Args:
        identifier: Raw node identifier (e.g., "orders.v2")

    Returns:
        Sanitized ID safe for Mermaid syntax
    """
    return re.sub(r"[^a-zA-Z0-9_]", "_", identifier)


def _escape_mermaid_label(text: str) -> str:
    """Escape quotes and pipes as Mermaid entity codes and flatten line breaks."""
    text = " ".join(text.splitlines())
    return text.replace('"', "#quot;").replace("|", "#124;")


def _quote_dot_id(identifier: str) -> str:
    """Quote an identifier for use in DOT syntax.

    Args:
        identifier: Raw node identifier

    Returns:
        Double-quoted identifier with internal quotes escaped
    """
    escaped = identifier.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def node_id(layer: str, table_name: str) -> str:
    """Diagram identifier of a table: ``<LAYER_UPPER>_<table_name>``."""
    return _sanitize_mermaid_id(f"{layer.upper()}_{table_name}")


def _known_layer(layer: str) -> Optional[Layer]:
    try:
        return Layer(layer)
    except ValueError:
        return None


def layer_title(layer: str) -> str:
    """Subgraph title for a layer, e.g. "Bronze Layer - Raw Data"."""
    title = f"{layer[:1].upper()}{layer[1:]} Layer"
    known = _known_layer(layer)
    if known is None:
        return title
    return f"{title} - {known.subtitle}"


def _diagram_ids(graph: LineageGraph) -> Dict[int, str]:
    """Assign each table a unique diagram id.

    Names that sanitize to the same id within a layer (``order-items`` and
    ``order_items``) get a numeric suffix in node order.
    """
    ids: Dict[int, str] = {}
    taken: Set[str] = set()
    for node in graph.nodes:
        base = node_id(node.layer, node.name)
        candidate, suffix = base, 2
        while candidate in taken:
            candidate = f"{base}_{suffix}"
            suffix += 1
        taken.add(candidate)
        ids[node.id] = candidate
    return ids


def _edge_ids(ids: Dict[int, str], edge: LineageEdge) -> Tuple[str, str]:
    src = ids.get(edge.source_id) or node_id(edge.source_layer, edge.source)
    tgt = ids.get(edge.target_id) or node_id(edge.target_layer, edge.target)
    return src, tgt


def _group_by_layer(graph: LineageGraph) -> Dict[str, List[LineageNode]]:
    """Group nodes by layer, keeping the graph's (layer rank, name) order."""
    groups: Dict[str, List[LineageNode]] = {}
    for node in graph.nodes:
        groups.setdefault(node.layer, []).append(node)
    return groups


class MermaidFormatter:
    """Format lineage graphs as layered Mermaid flowcharts."""

    @staticmethod
    def format_layered_graph(graph: LineageGraph) -> str:
        """Format a lineage graph as a left-to-right Mermaid flowchart.

        One subgraph per layer holds that layer's tables; connections follow
        all subgraphs, then a fixed style block and one class assignment per
        node. Identical graphs always produce identical text.

        Args:
            graph: Assembled LineageGraph

        Returns:
            Mermaid diagram string (graph LR syntax)
        """
        text = "graph LR\n\n"
        groups = _group_by_layer(graph)
        ids = _diagram_ids(graph)

        for layer, nodes in groups.items():
            text += f'    subgraph "{layer_title(layer)}"\n'
            for node in nodes:
                parts = [node.name]
                if node.column_count is not None:
                    parts.append(f"{node.column_count} columns")
                if node.description:
                    parts.append(node.description)
                label = _escape_mermaid_label("<br/>".join(parts))
                text += f'        {ids[node.id]}["{label}"]\n'
            text += "    end\n\n"

        for edge in graph.edges:
            src, tgt = _edge_ids(ids, edge)
            text += f"    {src} -->|{_escape_mermaid_label(edge.kind)}| {tgt}\n"

        text += "\n    %% Layer Styling\n"
        for layer, (fill, stroke) in LAYER_STYLES.items():
            text += (
                f"    classDef {layer.value} fill:{fill},stroke:{stroke},"
                "stroke-width:2px,color:#000\n"
            )
        text += "\n"

        for layer, nodes in groups.items():
            for node in nodes:
                text += f"    class {ids[node.id]} {_sanitize_mermaid_id(layer)}\n"

        return text


class MermaidMarkdownFormatter:
    """Format lineage graphs as Mermaid diagrams wrapped in markdown code fences."""

    @staticmethod
    def format_layered_graph(graph: LineageGraph) -> str:
        """Format a lineage graph as a Mermaid diagram in a markdown code block.

        Args:
            graph: Assembled LineageGraph

        Returns:
            Markdown string with fenced Mermaid diagram
        """
        mermaid = MermaidFormatter.format_layered_graph(graph)
        return f"```mermaid\n{mermaid}```"


class DotFormatter:
    """Format lineage graphs as DOT (Graphviz) diagrams."""

    @staticmethod
    def format_layered_graph(graph: LineageGraph) -> str:
        """Format a lineage graph as a DOT digraph with one cluster per layer.

        Args:
            graph: Assembled LineageGraph

        Returns:
            DOT diagram string
        """
        lines = [
            "digraph lineage {",
            "    rankdir=LR;",
            "    node [shape=box, style=rounded];",
        ]
        ids = _diagram_ids(graph)

        for layer, nodes in _group_by_layer(graph).items():
            known = _known_layer(layer)
            fill = LAYER_STYLES[known][0] if known else "#ffffff"
            lines.append(f"    subgraph cluster_{_sanitize_mermaid_id(layer)} {{")
            lines.append(f"        label={_quote_dot_id(layer_title(layer))};")
            for node in nodes:
                qid = _quote_dot_id(ids[node.id])
                label = _quote_dot_id(node.name)
                lines.append(
                    f'        {qid} [label={label}, style="rounded,filled", '
                    f'fillcolor="{fill}"];'
                )
            lines.append("    }")

        for edge in graph.edges:
            src, tgt = (_quote_dot_id(i) for i in _edge_ids(ids, edge))
            lines.append(f"    {src} -> {tgt} [label={_quote_dot_id(edge.kind)}];")

        lines.append("}")
        return "\n".join(lines)


DIAGRAM_FORMATTERS = {
    "mermaid": MermaidFormatter,
    "mermaid-markdown": MermaidMarkdownFormatter,
    "dot": DotFormatter,
}


def format_diagram(graph: LineageGraph, diagram_format: str = "mermaid") -> str:
    """Format a lineage graph in the requested diagram format.

    Args:
        graph: Assembled LineageGraph
        diagram_format: One of "mermaid", "mermaid-markdown" or "dot"

    Returns:
        Diagram text

    Raises:
        ValueError: If diagram_format is not recognized.
    """
    formatter = DIAGRAM_FORMATTERS.get(diagram_format)
    if formatter is None:
        raise ValueError(
            f"Invalid diagram format '{diagram_format}'. "
            "Use 'mermaid', 'mermaid-markdown', or 'dot'."
        )
    return formatter.format_layered_graph(graph)
