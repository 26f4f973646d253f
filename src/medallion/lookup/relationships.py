"""Point lookups of the relationships touching a table."""

import logging
from typing import List, Optional, Set

from medallion.global_models import Direction
from medallion.models import (
    RelationshipItem,
    RelationshipRequest,
    RelationshipResponse,
    RelationshipSummary,
)
from medallion.store.base import LineageStore
from medallion.store.records import RelationshipRecord

logger = logging.getLogger(__name__)


def _to_item(record: RelationshipRecord, direction: str) -> RelationshipItem:
    return RelationshipItem(
        id=record.id,
        relationship_type=record.relationship_type,
        description=record.description,
        confidence_score=record.confidence_score,
        source_table=record.source.name,
        source_table_id=record.source.id,
        source_layer=record.source.layer,
        target_table=record.target.name,
        target_table_id=record.target.id,
        target_layer=record.target.layer,
        direction=direction,
    )


def summarize(items: List[RelationshipItem]) -> RelationshipSummary:
    """Counts per direction and the mean confidence (0 for no items)."""
    total = len(items)
    avg = sum(i.confidence_score for i in items) / total if total else 0.0
    return RelationshipSummary(
        total=total,
        upstream=sum(1 for i in items if i.direction == Direction.UPSTREAM.value),
        downstream=sum(1 for i in items if i.direction == Direction.DOWNSTREAM.value),
        avg_confidence=avg,
    )


class RelationshipLookup:
    """Find relationship edges around a table, labelled by direction."""

    def __init__(self, store: LineageStore):
        self.store = store

    def _resolve_table_ids(self, request: RelationshipRequest) -> Optional[Set[int]]:
        """Table ids the request is about, or None for "every relationship"."""
        if request.table_id is not None:
            return {request.table_id}
        if request.table_name:
            tables = self.store.find_tables(request.table_name)
            if request.layer is not None:
                tables = [t for t in tables if t.layer == request.layer.value]
            return {t.id for t in tables}
        return None

    def lookup(self, request: RelationshipRequest) -> RelationshipResponse:
        """
        Return the relationships of a table in the requested direction(s).

        An edge is ``downstream`` of the table when the table is its source and
        ``upstream`` when the table is its target. Without a table, every
        relationship is returned labelled ``both``, narrowed to those touching
        ``layer`` when one is given.

        Args:
            request: Validated relationship request

        Returns:
            RelationshipResponse sorted by confidence descending

        Raises:
            StoreError: If the store query fails
        """
        table_ids = self._resolve_table_ids(request)

        items: List[RelationshipItem] = []
        if table_ids is None:
            layer = request.layer.value if request.layer is not None else None
            for record in self.store.relationships():
                if layer and layer not in (record.source.layer, record.target.layer):
                    continue
                items.append(_to_item(record, Direction.BOTH.value))
        elif table_ids:
            for record in self.store.relationships(sorted(table_ids)):
                is_source = record.source.id in table_ids
                is_target = record.target.id in table_ids
                if request.direction == Direction.UPSTREAM:
                    if not is_target:
                        continue
                    label = Direction.UPSTREAM
                elif request.direction == Direction.DOWNSTREAM:
                    if not is_source:
                        continue
                    label = Direction.DOWNSTREAM
                else:
                    label = Direction.DOWNSTREAM if is_source else Direction.UPSTREAM
                items.append(_to_item(record, label.value))

        items.sort(key=lambda i: (-i.confidence_score, i.id))
        logger.debug(
            "Relationship lookup %s: %d relationships",
            request.model_dump(exclude_none=True),
            len(items),
        )
        return RelationshipResponse(relationships=items, summary=summarize(items))
