"""Output formatters for lineage responses."""

from io import StringIO
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import BaseModel
from rich.console import Console
from rich.table import Table
from rich.text import Text

from medallion.graph.models import LineageEdge, LineageNode
from medallion.models import (
    ApiResponse,
    ColumnsResponse,
    FlowResponse,
    LineageChainResponse,
    RelationshipResponse,
    SearchResponse,
    TablesResponse,
    TransformationResponse,
)

LAYER_COLORS = {"bronze": "dark_orange", "silver": "magenta", "gold": "green"}


def _layer_text(layer: str) -> Text:
    return Text(layer, style=LAYER_COLORS.get(layer, "white"))


def _print_graph(
    nodes: List[LineageNode], edges: List[LineageEdge], title: str, console: Console
) -> None:
    if not nodes:
        console.print(f"[yellow]No lineage found for {title}.[/yellow]")
        return

    node_table = Table(title=f"Tables in {title}", title_style="bold")
    node_table.add_column("Layer")
    node_table.add_column("Table", style="cyan")
    node_table.add_column("Depth", style="yellow", justify="right")
    node_table.add_column("Columns", justify="right")
    node_table.add_column("Role", style="dim")
    for node in nodes:
        roles = [r for r, flag in (("root", node.is_root), ("leaf", node.is_leaf)) if flag]
        node_table.add_row(
            _layer_text(node.layer),
            node.name,
            str(node.depth),
            "" if node.column_count is None else str(node.column_count),
            ", ".join(roles),
        )
    console.print(node_table)

    if edges:
        edge_table = Table(title="Edges", title_style="bold")
        edge_table.add_column("Source", style="cyan")
        edge_table.add_column("Target", style="green")
        edge_table.add_column("Kind", style="magenta")
        edge_table.add_column("Confidence", justify="right")
        edge_table.add_column("Depth", style="yellow", justify="right")
        for edge in edges:
            edge_table.add_row(
                f"{edge.source_layer}.{edge.source}",
                f"{edge.target_layer}.{edge.target}",
                edge.kind,
                f"{edge.confidence:.2f}",
                str(edge.depth),
            )
        console.print(edge_table)

    console.print(f"[dim]Total: {len(nodes)} table(s), {len(edges)} edge(s)[/dim]")


class ChainTextFormatter:
    """Print a lineage chain as Rich tables followed by its diagram."""

    @staticmethod
    def format(
        response: LineageChainResponse, console: Console, diagram: Optional[str] = None
    ) -> None:
        """
        Print the chain's tables, edges and diagram.

        Args:
            response: Lineage chain response
            console: Rich Console instance for output
            diagram: Diagram text to print instead of ``mermaid_syntax``
        """
        title = f"{response.selected_layer}.{response.selected_table}"
        _print_graph(response.nodes, response.edges, title, console)
        if response.nodes:
            console.print(
                f"[dim]Depth: {response.total_depth}, "
                f"layers: {', '.join(response.layers_involved)}[/dim]"
            )
            console.print()
            console.print(
                diagram if diagram is not None else response.mermaid_syntax,
                markup=False,
                highlight=False,
                soft_wrap=True,
            )


class FlowTextFormatter:
    @staticmethod
    def format(response: FlowResponse, console: Console) -> None:
        _print_graph(response.nodes, response.edges, "flow", console)
        if response.nodes:
            console.print(
                f"[dim]Max depth: {response.summary.max_depth}, "
                f"layers: {', '.join(response.summary.layers)}[/dim]"
            )


class RelationshipTextFormatter:
    @staticmethod
    def format(response: RelationshipResponse, console: Console) -> None:
        if not response.relationships:
            console.print("[yellow]No relationships found.[/yellow]")
            return

        table = Table(title="Relationships", title_style="bold")
        table.add_column("Direction", style="yellow")
        table.add_column("Source", style="cyan")
        table.add_column("Target", style="green")
        table.add_column("Type", style="magenta")
        table.add_column("Confidence", justify="right")
        for rel in response.relationships:
            table.add_row(
                rel.direction,
                f"{rel.source_layer}.{rel.source_table}",
                f"{rel.target_layer}.{rel.target_table}",
                rel.relationship_type,
                f"{rel.confidence_score:.2f}",
            )
        console.print(table)
        summary = response.summary
        console.print(
            f"[dim]Total: {summary.total} ({summary.upstream} upstream, "
            f"{summary.downstream} downstream), "
            f"avg confidence {summary.avg_confidence:.2f}[/dim]"
        )


class TransformationTextFormatter:
    @staticmethod
    def format(response: TransformationResponse, console: Console) -> None:
        if not response.transformations:
            console.print("[yellow]No transformations found.[/yellow]")
            return

        table = Table(
            title=f"Transformations for {response.summary.table_name}",
            title_style="bold",
        )
        table.add_column("Name", style="cyan")
        table.add_column("Source", style="green")
        table.add_column("Target", style="green")
        table.add_column("Type", style="magenta")
        table.add_column("Status")
        table.add_column("Created", style="dim")
        for item in response.transformations:
            table.add_row(
                item.name,
                f"{item.source_layer}.{item.source_table}",
                f"{item.target_layer}.{item.target_table}",
                item.transformation_type,
                item.status or "",
                item.created_at.isoformat(),
            )
        console.print(table)
        console.print(
            f"[dim]Total: {response.summary.total}, layers: "
            f"{', '.join(response.summary.layers_involved)}[/dim]"
        )


class SearchTextFormatter:
    @staticmethod
    def format(response: SearchResponse, console: Console) -> None:
        results = response.results
        if results.total == 0:
            console.print(f"[yellow]No matches for '{response.query}'.[/yellow]")
            return

        if results.tables:
            table = Table(title="Tables", title_style="bold")
            table.add_column("Layer")
            table.add_column("Name", style="cyan")
            table.add_column("Description", style="dim")
            for item in results.tables:
                table.add_row(_layer_text(item.layer), item.name, item.description or "")
            console.print(table)

        if results.columns:
            table = Table(title="Columns", title_style="bold")
            table.add_column("Layer")
            table.add_column("Table", style="green")
            table.add_column("Column", style="cyan")
            table.add_column("Type", style="magenta")
            for item in results.columns:
                table.add_row(
                    _layer_text(item.layer), item.table_name, item.name, item.data_type
                )
            console.print(table)

        if results.transformations:
            table = Table(title="Transformations", title_style="bold")
            table.add_column("Name", style="cyan")
            table.add_column("Source", style="green")
            table.add_column("Target", style="green")
            table.add_column("Type", style="magenta")
            for item in results.transformations:
                table.add_row(
                    item.name, item.source_table, item.target_table, item.transformation_type
                )
            console.print(table)

        console.print(f"[dim]Total: {results.total} match(es)[/dim]")


class TablesTextFormatter:
    @staticmethod
    def format(response: TablesResponse, console: Console) -> None:
        if not response.tables:
            console.print("[yellow]No tables found.[/yellow]")
            return

        table = Table(title="Tables", title_style="bold")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Layer")
        table.add_column("Name", style="cyan")
        table.add_column("Description", style="dim")
        for item in response.tables:
            table.add_row(
                str(item.id), _layer_text(item.layer), item.name, item.description or ""
            )
        console.print(table)
        console.print(f"[dim]Total: {len(response.tables)} table(s)[/dim]")


class ColumnsTextFormatter:
    @staticmethod
    def format(response: ColumnsResponse, console: Console) -> None:
        if not response.columns:
            console.print(
                f"[yellow]No columns found for {response.layer_name}."
                f"{response.table_name}.[/yellow]"
            )
            return

        table = Table(
            title=f"Columns of {response.layer_name}.{response.table_name}",
            title_style="bold",
        )
        table.add_column("Name", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("Key", justify="center")
        table.add_column("Nullable", justify="center")
        for column in response.columns:
            table.add_row(
                column.name,
                column.data_type,
                "✓" if column.is_key else "",
                "✓" if column.is_nullable else "",
            )
        console.print(table)
        console.print(f"[dim]Total: {response.total_columns} column(s)[/dim]")


class JsonFormatter:
    """Format responses as JSON."""

    @staticmethod
    def format(response: BaseModel) -> str:
        """
        Serialize a response model.

        ``error`` is only included for responses that carry one.

        Args:
            response: Response model

        Returns:
            JSON-formatted string
        """
        if isinstance(response, ApiResponse):
            return response.to_json()
        return response.model_dump_json(indent=2)


class OutputWriter:
    """Write formatted output to file or stdout."""

    @staticmethod
    def write(content: str, output_file: Optional[Path] = None) -> None:
        """
        Write content to file or stdout.

        Args:
            content: The content to write
            output_file: Optional file path. If None, writes to stdout.
        """
        if output_file:
            output_file.write_text(content, encoding="utf-8")
        else:
            print(content)


def render_text(render: Callable[[Console], None]) -> str:
    """Capture Rich output as plain text, for writing to a file."""
    buffer = StringIO()
    render(Console(file=buffer, force_terminal=False, width=120))
    return buffer.getvalue()
