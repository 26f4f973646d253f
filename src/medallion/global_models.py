"""Shared models and enums used across medallion modules."""

from enum import Enum


class Layer(str, Enum):
    """Refinement stage of a warehouse table."""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"

    @property
    def rank(self) -> int:
        """Ordering rank used for sorting and styling (bronze first)."""
        return _LAYER_RANKS[self]

    @property
    def subtitle(self) -> str:
        """Short description shown next to the layer name in diagrams."""
        return _LAYER_SUBTITLES[self]


_LAYER_RANKS = {Layer.BRONZE: 1, Layer.SILVER: 2, Layer.GOLD: 3}

_LAYER_SUBTITLES = {
    Layer.BRONZE: "Raw Data",
    Layer.SILVER: "Cleansed Data",
    Layer.GOLD: "Business Ready",
}


class Direction(str, Enum):
    """Direction of a lineage walk or lookup relative to a table."""

    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"
    BOTH = "both"


class EdgeKind(str, Enum):
    """Which edge store a traversal follows."""

    RELATIONSHIP = "relationship"
    TRANSFORMATION = "transformation"


class SearchType(str, Enum):
    """Entity types covered by free-text search."""

    TABLES = "tables"
    COLUMNS = "columns"
    TRANSFORMATIONS = "transformations"
    ALL = "all"
