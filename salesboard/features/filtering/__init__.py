"""Filter model and predicate builder shared by every dashboard view."""

from salesboard.features.filtering.parser import get_filter_spec, parse_filters
from salesboard.features.filtering.predicates import (
    Operator,
    Predicate,
    PredicateSet,
    build_predicates,
)
from salesboard.features.filtering.schemas import (
    DetailMode,
    Dimension,
    FilterSpec,
    Granularity,
    SortDirection,
    Source,
)

__all__ = [
    "DetailMode",
    "Dimension",
    "FilterSpec",
    "Granularity",
    "Operator",
    "Predicate",
    "PredicateSet",
    "SortDirection",
    "Source",
    "build_predicates",
    "get_filter_spec",
    "parse_filters",
]
