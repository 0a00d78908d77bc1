"""Normalized filter specification for one dashboard request.

A FilterSpec is built fresh from query parameters for every request and
discarded once the response is assembled. Categorical filters only hold
non-empty value tuples: a dimension that is absent from ``categories`` is
unrestricted.
"""

from datetime import date
from enum import Enum
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

from salesboard.shared.schemas import PaginationParams

# =============================================================================
# Enums
# =============================================================================


class Source(str, Enum):
    """Data sources a predicate set can be built for."""

    SALE_LINE = "sale-line"
    TRANSACTION = "transaction"
    PROMO = "promo"


class Dimension(str, Enum):
    """Multi-valued categorical filters, keyed by their query parameter."""

    BRANCH = "branch"
    STORE = "store"
    SERIES = "series"
    GENDER = "gender"
    TIER = "tier"
    COLOR = "color"
    TIPE = "tipe"
    PAYMENT = "payment"
    CAMPAIGN = "campaign"


class Granularity(str, Enum):
    """Time-series bucket size."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class SortDirection(str, Enum):
    """Detail table sort direction."""

    ASC = "asc"
    DESC = "desc"


class DetailMode(str, Enum):
    """Detail table grouping granularity.

    ``kode`` groups by fine-grained product code (size level),
    ``kode_besar`` by coarse product code (article level).
    """

    KODE = "kode"
    KODE_BESAR = "kode_besar"


# =============================================================================
# Sort allow-lists
# =============================================================================

DEFAULT_SORT_KEY = "revenue"

_COMMON_SORT_KEYS = frozenset(
    {
        "toko",
        "article",
        "series",
        "gender",
        "tier",
        "color",
        "tipe",
        "pairs",
        "revenue",
        "avg_price",
    }
)

DETAIL_SORT_KEYS: dict[DetailMode, frozenset[str]] = {
    DetailMode.KODE: _COMMON_SORT_KEYS | {"kode"},
    DetailMode.KODE_BESAR: _COMMON_SORT_KEYS | {"kode_besar"},
}


# =============================================================================
# Filter specification
# =============================================================================


class FilterSpec(BaseModel):
    """Typed, normalized filters plus sort/paging directives."""

    model_config = ConfigDict(frozen=True)

    date_from: date | None = Field(None, description="Inclusive lower date bound.")
    date_to: date | None = Field(None, description="Inclusive upper date bound.")
    categories: dict[Dimension, tuple[str, ...]] = Field(
        default_factory=dict,
        description="Selected values per dimension; absent means unrestricted.",
    )
    search: str | None = Field(None, description="Case-insensitive substring search.")
    exclude_non_merchandise: bool = Field(
        True,
        description="Drop bags, vouchers, gifts, hangers and memberships from sale lines.",
    )
    granularity: Granularity = Granularity.DAILY
    mode: DetailMode = DetailMode.KODE
    sort_key: str = DEFAULT_SORT_KEY
    sort_direction: SortDirection = SortDirection.DESC
    pagination: PaginationParams = Field(default_factory=PaginationParams)
    export_all: bool = False
    rank_top: int | None = Field(
        None, ge=1, description="Article ranking size; None uses the configured limit."
    )

    def values(self, dimension: Dimension) -> tuple[str, ...]:
        """Selected values for ``dimension`` (empty tuple when unrestricted)."""
        return self.categories.get(dimension, ())

    def has(self, dimension: Dimension) -> bool:
        """Whether ``dimension`` restricts the result set."""
        return bool(self.categories.get(dimension))

    def without(self, *dimensions: Dimension) -> "FilterSpec":
        """Copy with the given categorical filters removed."""
        kept = {d: v for d, v in self.categories.items() if d not in dimensions}
        return self.model_copy(update={"categories": kept})

    def only(self, *dimensions: Dimension) -> "FilterSpec":
        """Copy keeping just the given categorical filters (and the date range)."""
        kept = {d: v for d, v in self.categories.items() if d in dimensions}
        return self.model_copy(update={"categories": kept, "search": None})

    def aggregate_view(self) -> "FilterSpec":
        """Copy with the detail-only directives reset and the exclusion forced on.

        Aggregate views never read mode, sort, paging or export, so requests
        differing only in those share one cache key.
        """
        return self.model_copy(
            update={
                "exclude_non_merchandise": True,
                "mode": DetailMode.KODE,
                "sort_key": DEFAULT_SORT_KEY,
                "sort_direction": SortDirection.DESC,
                "pagination": PaginationParams(),
                "export_all": False,
            }
        )

    def cache_key(self) -> str:
        """Deterministic query-string serialization of every field.

        Value order inside a dimension does not change the result set, so
        values are sorted; two requests differing only in that order share
        one cache entry.
        """
        pairs: list[tuple[str, str]] = [
            ("from", self.date_from.isoformat() if self.date_from else ""),
            ("to", self.date_to.isoformat() if self.date_to else ""),
            ("q", self.search or ""),
            ("excludeNonSku", "1" if self.exclude_non_merchandise else "0"),
            ("period", self.granularity.value),
            ("mode", self.mode.value),
            ("sort", self.sort_key),
            ("dir", self.sort_direction.value),
            ("page", str(self.pagination.page)),
            ("limit", str(self.pagination.page_size)),
            ("export", "all" if self.export_all else ""),
            ("top", str(self.rank_top) if self.rank_top else ""),
        ]
        for dimension, values in self.categories.items():
            if values:
                pairs.append((dimension.value, ",".join(sorted(values))))
        return urlencode(sorted(pairs))
