"""Predicate builder: FilterSpec + source -> tagged predicate fragments.

Predicates here carry no query syntax. Each one names a dimension, an
operator, the logical columns it touches and the user values it binds. Every
value owns exactly one placeholder, numbered consecutively from the set's
``start_index``; the renderer in ``analytics.planner`` turns each placeholder
into a named bind parameter (``p1``, ``p2``, ...).

Column availability is per source: a filter on a dimension the source does
not carry is silently dropped (a series filter means nothing to the
transaction fact).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from salesboard.features.filtering.schemas import Dimension, DetailMode, FilterSpec, Source

# =============================================================================
# Column availability
# =============================================================================

DATE_COLUMN = "sale_date"

SOURCE_COLUMNS: dict[Source, dict[Dimension, str]] = {
    Source.SALE_LINE: {
        Dimension.BRANCH: "branch",
        Dimension.STORE: "toko",
        Dimension.SERIES: "series",
        Dimension.GENDER: "gender",
        Dimension.TIER: "tier",
        Dimension.COLOR: "color",
    },
    Source.TRANSACTION: {
        Dimension.BRANCH: "branch",
        Dimension.STORE: "toko",
        Dimension.PAYMENT: "payment_type",
    },
    Source.PROMO: {
        Dimension.BRANCH: "branch",
        Dimension.STORE: "toko",
        Dimension.CAMPAIGN: "campaign_code",
    },
}

# Sources whose rows reach the SKU classification lookup through kode_besar.
CLASSIFIED_SOURCES = frozenset({Source.SALE_LINE})

# Logical column resolved on the classification lookup, not the fact.
CLASSIFICATION_COLUMN = "tipe"

SEARCH_COLUMNS: dict[DetailMode, tuple[str, ...]] = {
    DetailMode.KODE: ("kode", "article", "toko"),
    DetailMode.KODE_BESAR: ("kode_besar", "article", "toko"),
}

# Case-insensitive substrings identifying bags, gifts, vouchers, hangers and
# membership lines. Fixed literals: they never become bind parameters.
NON_MERCHANDISE_PATTERNS: dict[str, tuple[str, ...]] = {
    "kode": ("shopbag", "paperbag", "gwp", "hanger"),
    "kode_besar": (
        "shopbag",
        "paperbag",
        "gwp",
        "gift",
        "voucher",
        "membership",
        "hanger",
    ),
    "article": (
        "shopbag",
        "paperbag",
        "paper bag",
        "shopping bag",
        "gwp",
        "gift",
        "voucher",
        "membership",
        "hanger",
    ),
}

# Emission order for categorical filters.
CATEGORICAL_ORDER: tuple[Dimension, ...] = (
    Dimension.BRANCH,
    Dimension.STORE,
    Dimension.SERIES,
    Dimension.GENDER,
    Dimension.TIER,
    Dimension.COLOR,
    Dimension.PAYMENT,
    Dimension.CAMPAIGN,
)


# =============================================================================
# Fragments
# =============================================================================


class Operator(str, Enum):
    """Predicate operators understood by the renderer."""

    IN = "in"
    GTE = "gte"
    LTE = "lte"
    CONTAINS = "contains"
    EXCLUDE = "exclude"


def placeholder_name(index: int) -> str:
    """Bind parameter name for a placeholder index."""
    return f"p{index}"


@dataclass(frozen=True)
class Predicate:
    """One tagged predicate fragment.

    Attributes:
        dimension: What the fragment restricts (``date``, ``branch``, ``search``...).
        operator: How the columns are compared.
        columns: Logical column names; ``tipe`` lives on the classification lookup.
        values: Bound values, one placeholder each.
        first_index: Placeholder index of ``values[0]``; 0 when nothing is bound.
    """

    dimension: str
    operator: Operator
    columns: tuple[str, ...]
    values: tuple[Any, ...] = ()
    first_index: int = 0

    @property
    def placeholders(self) -> tuple[str, ...]:
        return tuple(placeholder_name(self.first_index + offset) for offset in range(len(self.values)))

    @property
    def via_classification(self) -> bool:
        return self.columns == (CLASSIFICATION_COLUMN,)


@dataclass(frozen=True)
class PredicateSet:
    """Ordered fragments for one source plus the join requirement."""

    source: Source
    predicates: tuple[Predicate, ...] = ()
    needs_join: bool = False
    start_index: int = 1
    next_index: int = 1
    dimensions: frozenset[str] = field(default=frozenset())

    @classmethod
    def empty(cls, source: Source, start_index: int = 1) -> "PredicateSet":
        return cls(source=source, start_index=start_index, next_index=start_index)

    @property
    def params(self) -> list[Any]:
        """Bound values in placeholder order."""
        return [value for predicate in self.predicates for value in predicate.values]

    @property
    def placeholders(self) -> list[str]:
        return [name for predicate in self.predicates for name in predicate.placeholders]

    @property
    def placeholder_count(self) -> int:
        return self.next_index - self.start_index


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user text only ever matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# =============================================================================
# Builder
# =============================================================================


class _Emitter:
    """Appends fragments while threading placeholder indices."""

    def __init__(self, start_index: int):
        self.next_index = start_index
        self.predicates: list[Predicate] = []

    def emit(
        self,
        dimension: str,
        operator: Operator,
        columns: tuple[str, ...],
        values: tuple[Any, ...] = (),
    ) -> None:
        first_index = self.next_index if values else 0
        self.predicates.append(Predicate(dimension, operator, columns, values, first_index))
        self.next_index += len(values)


def build_predicates(filters: FilterSpec, source: Source, start_index: int = 1) -> PredicateSet:
    """Build the predicate set applying ``filters`` to ``source``.

    Fragment order is fixed: date bounds, categorical filters, tipe, free-text
    search, non-merchandise exclusion.

    Args:
        filters: Normalized filters.
        source: Target data source.
        start_index: Index of the first placeholder, for composing several
            predicate sets into one statement.

    Returns:
        PredicateSet whose ``params`` line up with its placeholders.
    """
    columns = SOURCE_COLUMNS[source]
    emitter = _Emitter(start_index)

    if filters.date_from is not None:
        emitter.emit("date", Operator.GTE, (DATE_COLUMN,), (filters.date_from,))
    if filters.date_to is not None:
        emitter.emit("date", Operator.LTE, (DATE_COLUMN,), (filters.date_to,))

    for dimension in CATEGORICAL_ORDER:
        values = filters.values(dimension)
        if values and dimension in columns:
            emitter.emit(dimension.value, Operator.IN, (columns[dimension],), values)

    needs_join = False
    tipes = filters.values(Dimension.TIPE)
    if tipes and source in CLASSIFIED_SOURCES:
        emitter.emit(Dimension.TIPE.value, Operator.IN, (CLASSIFICATION_COLUMN,), tipes)
        needs_join = True

    if source is Source.SALE_LINE:
        if filters.search:
            pattern = f"%{escape_like(filters.search)}%"
            emitter.emit("search", Operator.CONTAINS, SEARCH_COLUMNS[filters.mode], (pattern,))
        if filters.exclude_non_merchandise:
            emitter.emit("non_merchandise", Operator.EXCLUDE, tuple(NON_MERCHANDISE_PATTERNS))

    predicates = tuple(emitter.predicates)
    return PredicateSet(
        source=source,
        predicates=predicates,
        needs_join=needs_join,
        start_index=start_index,
        next_index=emitter.next_index,
        dimensions=frozenset(p.dimension for p in predicates),
    )
