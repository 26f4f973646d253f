"""Table-level lineage graph resolution for medallion."""

from medallion.graph.assembler import GraphAssembler
from medallion.graph.diagram_formatters import (
    DotFormatter,
    MermaidFormatter,
    MermaidMarkdownFormatter,
    format_diagram,
)
from medallion.graph.models import (
    GraphSummary,
    LineageEdge,
    LineageGraph,
    LineageNode,
    TraversalResult,
)
from medallion.graph.traversal import GraphTraverser

__all__ = [
    # Models
    "GraphSummary",
    "LineageEdge",
    "LineageGraph",
    "LineageNode",
    "TraversalResult",
    # Traversal
    "GraphTraverser",
    # Assembly
    "GraphAssembler",
    # Diagrams
    "MermaidFormatter",
    "MermaidMarkdownFormatter",
    "DotFormatter",
    "format_diagram",
]
