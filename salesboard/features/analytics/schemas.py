"""Pydantic schemas for the dashboard, detail and filter-options views.

Every response has a fixed key set: breakdowns with no data are empty lists,
never missing. Null dimension values pass through as null; the dashboard
client labels them.
"""

from datetime import date

from pydantic import BaseModel, Field

from salesboard.shared.schemas import CamelModel

# =============================================================================
# Dashboard
# =============================================================================


class KpiSummary(CamelModel):
    """Headline totals and derived ratios."""

    revenue: float = Field(0.0, description="Summed net revenue")
    pairs: int = Field(0, description="Summed units")
    transactions: int = Field(0, description="Summed receipt count")
    atu: float = Field(0.0, description="Pairs per transaction (0 without transactions)")
    asp: float = Field(0.0, description="Revenue per pair (0 without pairs)")
    atv: float = Field(0.0, description="Revenue per transaction (0 without transactions)")


class PeriodPoint(CamelModel):
    """One time-series bucket."""

    period: str = Field(..., description="Bucket start date (YYYY-MM-DD)")
    pairs: int = 0
    revenue: float = 0.0


class StoreRow(CamelModel):
    """Per-store sales merged with the store's transaction count."""

    toko: str | None
    branch: str | None = None
    pairs: int = 0
    revenue: float = 0.0
    transactions: int = Field(0, description="0 when the store has no transaction rows")
    atu: float = 0.0
    asp: float = 0.0
    atv: float = 0.0


class BreakdownItem(CamelModel):
    """Aggregate for one value of one dimension."""

    value: str | None
    pairs: int = 0
    revenue: float = 0.0


class PriceBucket(CamelModel):
    """Pairs sold by products whose average price falls in the band."""

    label: str
    low: int
    high: int | None = Field(None, description="Inclusive upper bound; null when open-ended")
    pairs: int


class ArticleRank(CamelModel):
    """Top-N ranking row."""

    article: str | None = Field(None, description="Article name, falling back to kode_besar")
    kode_besar: str | None = None
    kode_mix: str | None = None
    pairs: int = 0
    revenue: float = 0.0


class DashboardResponse(CamelModel):
    """Everything the main dashboard renders for one filter context."""

    kpis: KpiSummary
    time_series: list[PeriodPoint] = Field(default_factory=list)
    stores: list[StoreRow] = Field(default_factory=list)
    by_branch: list[BreakdownItem] = Field(default_factory=list)
    by_series: list[BreakdownItem] = Field(default_factory=list)
    by_gender: list[BreakdownItem] = Field(default_factory=list)
    by_tier: list[BreakdownItem] = Field(default_factory=list)
    by_tipe: list[BreakdownItem] = Field(default_factory=list)
    by_color: list[BreakdownItem] = Field(default_factory=list)
    by_size: list[BreakdownItem] = Field(default_factory=list)
    by_price: list[PriceBucket] = Field(default_factory=list)
    rank_by_article: list[ArticleRank] = Field(default_factory=list)
    last_update: date | None = Field(None, description="Latest sale date loaded")


# =============================================================================
# Detail
# =============================================================================


class DetailRow(BaseModel):
    """One grouped detail row. Keeps column names as sent by the table view."""

    toko: str | None = None
    kode: str | None = Field(None, description="Null in kode_besar mode")
    kode_besar: str | None = None
    article: str | None = None
    gender: str | None = None
    series: str | None = None
    color: str | None = None
    tipe: str | None = None
    tier: str | None = None
    pairs: int = 0
    revenue: float = 0.0
    avg_price: float = 0.0


class DetailTotals(CamelModel):
    """Sums across every matching group, not just the current page."""

    pairs: int = 0
    revenue: float = 0.0


class DetailResponse(CamelModel):
    """Paginated (or exported) detail table."""

    rows: list[DetailRow] = Field(default_factory=list)
    total: int = Field(0, description="Matching groups")
    page: int = 1
    pages: int = 0
    totals: DetailTotals = Field(default_factory=DetailTotals)


# =============================================================================
# Filter options
# =============================================================================


class FilterOptionsResponse(CamelModel):
    """Distinct values per dimension under the other active filters."""

    branches: list[str] = Field(default_factory=list)
    stores: list[str] = Field(default_factory=list)
    series: list[str] = Field(default_factory=list)
    genders: list[str] = Field(default_factory=list)
    tiers: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    tipes: list[str] = Field(default_factory=list)
    payments: list[str] = Field(default_factory=list)
