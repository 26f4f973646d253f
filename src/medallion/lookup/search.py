"""Case-insensitive free-text search over tables, columns and transformations."""

import logging
from typing import List

from medallion.global_models import SearchType
from medallion.models import (
    SearchColumnItem,
    SearchRequest,
    SearchResponse,
    SearchResults,
    SearchSuggestions,
    SearchTableItem,
    SearchTransformationItem,
)
from medallion.store.base import LineageStore

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3


class SearchEngine:
    """Substring search capped at the request limit per entity type."""

    def __init__(self, store: LineageStore):
        self.store = store

    def search(self, request: SearchRequest) -> SearchResponse:
        """
        Search the requested entity types and suggest tables and layers.

        Args:
            request: Validated search request (query length and limit already checked)

        Returns:
            SearchResponse with per-type matches, total and suggestions

        Raises:
            StoreError: If a store query fails
        """
        text = request.q

        def wanted(entity: SearchType) -> bool:
            return request.type in (SearchType.ALL, entity)

        results = SearchResults()
        if wanted(SearchType.TABLES):
            results.tables = [
                SearchTableItem(
                    id=t.id, name=t.name, description=t.description, layer=t.layer
                )
                for t in self.store.search_tables(text, request.limit)
            ]
        if wanted(SearchType.COLUMNS):
            results.columns = [
                SearchColumnItem(
                    id=c.id,
                    name=c.name,
                    data_type=c.data_type,
                    table_name=c.table_name,
                    layer=c.layer,
                )
                for c in self.store.search_columns(text, request.limit)
            ]
        if wanted(SearchType.TRANSFORMATIONS):
            results.transformations = [
                SearchTransformationItem(
                    id=t.id,
                    name=t.name,
                    description=t.description,
                    transformation_type=t.transformation_type,
                    source_table=t.source.name,
                    target_table=t.target.name,
                )
                for t in self.store.search_transformations(text, request.limit)
            ]
        results.total = (
            len(results.tables) + len(results.columns) + len(results.transformations)
        )

        layers: List[str] = []
        for table in results.tables:
            if table.layer not in layers:
                layers.append(table.layer)

        logger.debug("Search %r (%s): %d matches", text, request.type.value, results.total)
        return SearchResponse(
            query=text,
            results=results,
            suggestions=SearchSuggestions(
                tables=[t.name for t in results.tables[:MAX_SUGGESTIONS]],
                layers=layers[:MAX_SUGGESTIONS],
            ),
        )
