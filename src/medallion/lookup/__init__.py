"""Non-recursive lineage lookups: relationships, transformations, search."""

from medallion.lookup.catalog import CatalogBrowser
from medallion.lookup.relationships import RelationshipLookup
from medallion.lookup.search import SearchEngine
from medallion.lookup.transformations import TransformationLookup

__all__ = [
    "CatalogBrowser",
    "RelationshipLookup",
    "SearchEngine",
    "TransformationLookup",
]
