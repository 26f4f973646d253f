"""Browse the tables and columns held by a lineage store."""

from medallion.models import (
    ColumnItem,
    ColumnsRequest,
    ColumnsResponse,
    TableItem,
    TablesRequest,
    TablesResponse,
)
from medallion.store.base import LineageStore


class CatalogBrowser:
    """List tables per layer and columns per table."""

    def __init__(self, store: LineageStore):
        self.store = store

    def tables(self, request: TablesRequest) -> TablesResponse:
        """Tables ordered by layer rank then name, optionally for one layer."""
        layer = request.layer.value if request.layer else None
        return TablesResponse(
            tables=[
                TableItem(id=t.id, name=t.name, description=t.description, layer=t.layer)
                for t in self.store.list_tables(layer)
            ]
        )

    def columns(self, request: ColumnsRequest) -> ColumnsResponse:
        """Columns of a table ordered by name; empty when the table is unknown."""
        layer = request.layer.value
        table = self.store.find_table(request.table, layer)
        records = self.store.list_columns(table.id) if table else []
        columns = [
            ColumnItem(
                id=c.id,
                name=c.name,
                data_type=c.data_type,
                is_key=c.is_key,
                is_nullable=c.is_nullable,
            )
            for c in records
        ]
        return ColumnsResponse(
            columns=columns,
            table_name=request.table,
            layer_name=layer,
            total_columns=len(columns),
        )
