"""Point lookups of transformations, by table or by layer pair."""

import logging
from typing import List, Sequence, Set

from medallion.global_models import Direction
from medallion.models import (
    LayerPairTransformationQuery,
    TableTransformationQuery,
    TransformationItem,
    TransformationQuery,
    TransformationResponse,
    TransformationSummary,
)
from medallion.store.base import LineageStore
from medallion.store.records import TransformationRecord

logger = logging.getLogger(__name__)


def _to_item(record: TransformationRecord) -> TransformationItem:
    return TransformationItem(
        id=record.id,
        name=record.name,
        description=record.description,
        source_table=record.source.name,
        target_table=record.target.name,
        source_layer=record.source.layer,
        target_layer=record.target.layer,
        transformation_type=record.transformation_type,
        created_at=record.created_at,
        script=record.script,
        status=record.status,
    )


def _newest_first(records: Sequence[TransformationRecord]) -> List[TransformationRecord]:
    return sorted(records, key=lambda t: (t.created_at, t.id), reverse=True)


def _layers_involved(records: Sequence[TransformationRecord]) -> List[str]:
    ranks = {}
    for record in records:
        ranks.setdefault(record.source.layer, record.source.layer_rank)
        ranks.setdefault(record.target.layer, record.target.layer_rank)
    return sorted(ranks, key=lambda layer: (ranks[layer], layer))


class TransformationLookup:
    """Find transformation edges for a table or between two layers."""

    def __init__(self, store: LineageStore):
        self.store = store

    def lookup(self, query: TransformationQuery) -> TransformationResponse:
        """
        Run a table-scoped or layer-pair transformation query.

        Args:
            query: Either a TableTransformationQuery or a
                LayerPairTransformationQuery

        Returns:
            TransformationResponse with full transformation metadata

        Raises:
            StoreError: If the store query fails
        """
        if isinstance(query, LayerPairTransformationQuery):
            return self.by_layer_pair(query)
        return self.by_table(query)

    def by_table(self, query: TableTransformationQuery) -> TransformationResponse:
        """Transformations reading from or writing to a table.

        Sorted by source layer rank, target layer rank, then newest first.
        """
        if query.table_name:
            table_ids: Set[int] = {t.id for t in self.store.find_tables(query.table_name)}
            label = query.table_name
        else:
            table_ids = {query.table_id} if query.table_id is not None else set()
            label = f"Table ID {query.table_id}"

        records: List[TransformationRecord] = []
        if table_ids:
            for record in self.store.transformations_for_tables(sorted(table_ids)):
                if (
                    query.direction == Direction.UPSTREAM
                    and record.target.id not in table_ids
                ):
                    continue
                if (
                    query.direction == Direction.DOWNSTREAM
                    and record.source.id not in table_ids
                ):
                    continue
                records.append(record)

        records = sorted(
            _newest_first(records),
            key=lambda t: (t.source.layer_rank, t.target.layer_rank),
        )
        logger.debug("Transformations for %s: %d found", label, len(records))
        return TransformationResponse(
            transformations=[_to_item(r) for r in records],
            summary=TransformationSummary(
                total=len(records),
                table_name=label,
                layers_involved=_layers_involved(records),
                avg_confidence=1.0 if records else 0.0,
            ),
        )

    def by_layer_pair(
        self, query: LayerPairTransformationQuery
    ) -> TransformationResponse:
        """Transformations from the source layer into the target layer, newest first."""
        source, target = query.source_layer.value, query.target_layer.value
        records = _newest_first(
            self.store.transformations_between_layers(source, target)
        )
        logger.debug("Transformations %s -> %s: %d found", source, target, len(records))
        return TransformationResponse(
            transformations=[_to_item(r) for r in records],
            summary=TransformationSummary(
                total=len(records),
                table_name=f"{source} → {target}",
                layers_involved=[source, target],
                avg_confidence=1.0 if records else 0.0,
            ),
        )
