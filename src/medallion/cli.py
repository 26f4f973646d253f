"""CLI entry point for medallion."""

from pathlib import Path
from typing import Any, Callable, Optional

import typer
from rich.console import Console
from rich.markup import escape

from medallion import service
from medallion.formatters import (
    ChainTextFormatter,
    ColumnsTextFormatter,
    FlowTextFormatter,
    JsonFormatter,
    OutputWriter,
    RelationshipTextFormatter,
    SearchTextFormatter,
    TablesTextFormatter,
    TransformationTextFormatter,
    render_text,
)
from medallion.graph.diagram_formatters import DIAGRAM_FORMATTERS, format_diagram
from medallion.graph.models import GraphSummary, LineageGraph
from medallion.models import LineageChainResponse, RequestValidationError
from medallion.store import LineageStore, StoreError, get_store
from medallion.utils.config import ConfigSettings, load_config
from medallion.utils.logging import configure_logging

app = typer.Typer(
    name="medallion",
    help="Explore table lineage across bronze, silver and gold layers.",
    invoke_without_command=False,
)
console = Console()
err_console = Console(stderr=True)

OUTPUT_FORMATS = ("text", "json")


def _settings(ctx: typer.Context) -> ConfigSettings:
    if isinstance(ctx.obj, ConfigSettings):
        return ctx.obj
    return load_config()


def _first_set(*values: Any) -> Any:
    """First value that is not None (CLI flag, then config, then default)."""
    return next(v for v in values if v is not None)


def _open_store(settings: ConfigSettings) -> LineageStore:
    """Instantiate and configure the store named in the settings."""
    name = settings.store or ("memory" if settings.snapshot else "sql")
    try:
        store = get_store(name)
        store.configure(settings.store_config())
    except StoreError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    return store


def _call(operation: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run a service operation, turning bad input into exit code 2."""
    try:
        return operation(*args, **kwargs)
    except RequestValidationError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)


def _resolve_output_format(output_format: Optional[str], settings: ConfigSettings) -> str:
    output_format = output_format or settings.output_format or "text"
    if output_format not in OUTPUT_FORMATS:
        err_console.print(
            f"[red]Error:[/red] Invalid output format '{output_format}'. "
            "Use 'text' or 'json'."
        )
        raise typer.Exit(1)
    return output_format


def _emit(
    response: Any,
    output_format: str,
    output_file: Optional[Path],
    text_formatter: Callable[[Any, Console], None],
) -> None:
    """Print or write a response, exiting with code 1 when it carries an error."""
    error = getattr(response, "error", None)
    if output_format == "json":
        OutputWriter.write(JsonFormatter.format(response), output_file)
    elif error is None:
        if output_file:
            content = render_text(lambda c: text_formatter(response, c))
            output_file.write_text(content, encoding="utf-8")
        else:
            text_formatter(response, console)

    if output_file and (output_format == "json" or error is None):
        console.print(f"[green]Success:[/green] Output written to {output_file}")
    if error is not None:
        err_console.print(f"[red]Error:[/red] {escape(error)}")
        raise typer.Exit(1)


def _chain_graph(response: LineageChainResponse) -> LineageGraph:
    depth = max((n.depth for n in response.nodes), default=0)
    return LineageGraph(
        nodes=response.nodes,
        edges=response.edges,
        summary=GraphSummary(
            total_nodes=len(response.nodes),
            total_edges=len(response.edges),
            max_depth=depth,
            layers=response.layers_involved,
        ),
    )


OutputFormatOption = typer.Option(
    None,
    "--output-format",
    "-f",
    help="Output format: 'text' or 'json' (default: text, or from config)",
)
OutputFileOption = typer.Option(
    None,
    "--output-file",
    "-o",
    help="Write output to file instead of stdout",
)


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        help="Path to a config file (default: medallion.toml in the current directory)",
    ),
    store: Optional[str] = typer.Option(
        None,
        "--store",
        "-s",
        help="Store adapter: 'sql' or 'memory' (default: sql, or memory with --snapshot)",
    ),
    database_url: Optional[str] = typer.Option(
        None,
        "--database-url",
        help="SQLAlchemy URL of the lineage database (sql store)",
    ),
    snapshot: Optional[Path] = typer.Option(
        None,
        "--snapshot",
        help="JSON snapshot file to load (memory store)",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level, e.g. DEBUG or INFO (default: WARNING)",
    ),
) -> None:
    """medallion - lineage explorer for layered data warehouses."""
    config = load_config(config_file)
    overrides = {
        "store": store,
        "database_url": database_url,
        "snapshot": str(snapshot) if snapshot else None,
        "log_level": log_level,
    }
    settings = config.model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )
    try:
        configure_logging(settings.log_level, console=err_console)
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    ctx.obj = settings


@app.command()
def chain(
    ctx: typer.Context,
    table_name: str = typer.Argument(..., help="Table to resolve the lineage chain for"),
    layer: str = typer.Argument(..., help="Layer of the table: bronze, silver or gold"),
    direction: str = typer.Option(
        "both",
        "--direction",
        "-d",
        help="Traversal direction: 'upstream', 'downstream' or 'both'",
    ),
    max_depth: Optional[int] = typer.Option(
        None,
        "--max-depth",
        help="Maximum transformation hops (default: 3, or from config)",
    ),
    diagram_format: Optional[str] = typer.Option(
        None,
        "--diagram-format",
        help="Diagram format: 'mermaid', 'mermaid-markdown' or 'dot' (default: mermaid)",
    ),
    diagram_only: bool = typer.Option(
        False,
        "--diagram-only",
        help="Output only the diagram text",
    ),
    output_format: Optional[str] = OutputFormatOption,
    output_file: Optional[Path] = OutputFileOption,
) -> None:
    """
    Resolve the transformation chain around a table.

    Examples:

        # Upstream and downstream chain of a silver table
        medallion chain orders_clean silver

        # Downstream only, as a Graphviz diagram
        medallion chain orders bronze -d downstream --diagram-only --diagram-format dot
    """
    settings = _settings(ctx)
    output_format = _resolve_output_format(output_format, settings)
    diagram_format = diagram_format or settings.diagram_format or "mermaid"
    if diagram_format not in DIAGRAM_FORMATTERS:
        err_console.print(
            f"[red]Error:[/red] Invalid diagram format '{diagram_format}'. "
            f"Use one of: {', '.join(DIAGRAM_FORMATTERS)}."
        )
        raise typer.Exit(1)

    store = _open_store(settings)
    response = _call(
        service.resolve_lineage_chain,
        store,
        table_name=table_name,
        layer=layer,
        direction=direction,
        max_depth=_first_set(
            max_depth, settings.lineage_depth, service.DEFAULT_LINEAGE_DEPTH
        ),
        max_workers=settings.max_workers or service.DEFAULT_MAX_WORKERS,
    )

    diagram = None
    if response.error is None and response.nodes:
        diagram = format_diagram(_chain_graph(response), diagram_format)

    if diagram_only:
        if response.error is not None:
            err_console.print(f"[red]Error:[/red] {escape(response.error)}")
            raise typer.Exit(1)
        OutputWriter.write(diagram or "", output_file)
        if output_file:
            console.print(f"[green]Success:[/green] Diagram written to {output_file}")
        return

    _emit(
        response,
        output_format,
        output_file,
        lambda r, c: ChainTextFormatter.format(r, c, diagram=diagram),
    )


@app.command()
def flow(
    ctx: typer.Context,
    start_table: Optional[str] = typer.Option(
        None, "--start", help="Starting table (default: every bronze table)"
    ),
    end_table: Optional[str] = typer.Option(
        None, "--end", help="Table that may only be reached at exactly --max-depth"
    ),
    max_depth: Optional[int] = typer.Option(
        None, "--max-depth", help="Maximum relationship hops (default: 5, or from config)"
    ),
    output_format: Optional[str] = OutputFormatOption,
    output_file: Optional[Path] = OutputFileOption,
) -> None:
    """
    Resolve the downstream relationship flow through the layers.

    Examples:

        # Flow from every bronze table
        medallion flow

        # Flow from one table, as JSON
        medallion flow --start orders -f json
    """
    settings = _settings(ctx)
    output_format = _resolve_output_format(output_format, settings)
    store = _open_store(settings)
    response = _call(
        service.resolve_full_flow,
        store,
        start_table=start_table,
        end_table=end_table,
        max_depth=_first_set(max_depth, settings.flow_depth, service.DEFAULT_FLOW_DEPTH),
    )
    _emit(response, output_format, output_file, FlowTextFormatter.format)


@app.command()
def relationships(
    ctx: typer.Context,
    table_name: Optional[str] = typer.Option(None, "--table", "-t", help="Table name"),
    table_id: Optional[int] = typer.Option(None, "--table-id", help="Table id"),
    layer: Optional[str] = typer.Option(
        None, "--layer", "-l", help="Restrict --table to one layer"
    ),
    direction: str = typer.Option(
        "both",
        "--direction",
        "-d",
        help="'upstream', 'downstream' or 'both'",
    ),
    output_format: Optional[str] = OutputFormatOption,
    output_file: Optional[Path] = OutputFileOption,
) -> None:
    """
    List the relationships touching a table (or all relationships).

    Examples:

        medallion relationships --table orders_clean --direction upstream
    """
    settings = _settings(ctx)
    output_format = _resolve_output_format(output_format, settings)
    store = _open_store(settings)
    response = _call(
        service.lookup_relationships,
        store,
        table_id=table_id,
        table_name=table_name,
        layer=layer,
        direction=direction,
    )
    _emit(response, output_format, output_file, RelationshipTextFormatter.format)


@app.command()
def transformations(
    ctx: typer.Context,
    table_name: Optional[str] = typer.Option(None, "--table", "-t", help="Table name"),
    table_id: Optional[int] = typer.Option(None, "--table-id", help="Table id"),
    source_layer: Optional[str] = typer.Option(
        None, "--source-layer", help="Source layer of a layer-pair query"
    ),
    target_layer: Optional[str] = typer.Option(
        None, "--target-layer", help="Target layer of a layer-pair query"
    ),
    direction: str = typer.Option(
        "both",
        "--direction",
        "-d",
        help="'upstream', 'downstream' or 'both' (table queries only)",
    ),
    output_format: Optional[str] = OutputFormatOption,
    output_file: Optional[Path] = OutputFileOption,
) -> None:
    """
    List transformations of a table, or between two layers.

    Examples:

        medallion transformations --table orders_clean

        medallion transformations --source-layer bronze --target-layer silver
    """
    settings = _settings(ctx)
    output_format = _resolve_output_format(output_format, settings)
    store = _open_store(settings)
    response = _call(
        service.lookup_transformations,
        store,
        table_name=table_name,
        table_id=table_id,
        source_layer=source_layer,
        target_layer=target_layer,
        direction=direction,
    )
    _emit(response, output_format, output_file, TransformationTextFormatter.format)


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to search for (at least 2 characters)"),
    search_type: str = typer.Option(
        "all",
        "--type",
        help="'tables', 'columns', 'transformations' or 'all'",
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", help="Maximum matches per type (default: 10, or from config)"
    ),
    output_format: Optional[str] = OutputFormatOption,
    output_file: Optional[Path] = OutputFileOption,
) -> None:
    """
    Search tables, columns and transformations by name or description.

    Examples:

        medallion search cust --type tables
    """
    settings = _settings(ctx)
    output_format = _resolve_output_format(output_format, settings)
    store = _open_store(settings)
    response = _call(
        service.search,
        store,
        q=query,
        type=search_type,
        limit=_first_set(limit, settings.search_limit, service.DEFAULT_SEARCH_LIMIT),
    )
    _emit(response, output_format, output_file, SearchTextFormatter.format)


@app.command()
def tables(
    ctx: typer.Context,
    layer: Optional[str] = typer.Option(None, "--layer", "-l", help="Only this layer"),
    output_format: Optional[str] = OutputFormatOption,
    output_file: Optional[Path] = OutputFileOption,
) -> None:
    """List tables, ordered by layer and name."""
    settings = _settings(ctx)
    output_format = _resolve_output_format(output_format, settings)
    store = _open_store(settings)
    response = _call(service.list_tables, store, layer=layer)
    _emit(response, output_format, output_file, TablesTextFormatter.format)


@app.command()
def columns(
    ctx: typer.Context,
    table_name: str = typer.Argument(..., help="Table name"),
    layer: str = typer.Argument(..., help="Layer of the table"),
    output_format: Optional[str] = OutputFormatOption,
    output_file: Optional[Path] = OutputFileOption,
) -> None:
    """List the columns of a table."""
    settings = _settings(ctx)
    output_format = _resolve_output_format(output_format, settings)
    store = _open_store(settings)
    response = _call(service.list_columns, store, table=table_name, layer=layer)
    _emit(response, output_format, output_file, ColumnsTextFormatter.format)


@app.command()
def ping() -> None:
    """Check that the command line is working (does not touch the store)."""
    console.print_json(service.ping().model_dump_json())


@app.command()
def health(ctx: typer.Context) -> None:
    """Check that the lineage store is reachable."""
    store = _open_store(_settings(ctx))
    response = service.health(store)
    console.print_json(JsonFormatter.format(response))
    if not response.ok:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
