"""Pydantic schemas for the promo view."""

from pydantic import Field

from salesboard.features.analytics.schemas import KpiSummary, StoreRow
from salesboard.shared.schemas import CamelModel


class PromoKpis(CamelModel):
    """Totals over promo-attributed receipts."""

    qty_promo: int = Field(0, description="Units sold under a promo")
    qty_all: int = Field(0, description="All units on promo receipts")
    revenue: float = 0.0
    discount_total: float = 0.0
    transactions: int = 0
    promo_share: float = Field(0.0, description="qty_promo / qty_all (0 without units)")
    atu: float = 0.0
    asp: float = 0.0
    atv: float = 0.0


class PromoPeriodPoint(CamelModel):
    period: str
    qty_promo: int = 0
    qty_all: int = 0
    revenue: float = 0.0
    discount_total: float = 0.0
    transactions: int = 0
    promo_share: float = 0.0


class OverallPeriodPoint(CamelModel):
    """All sales in a period, with the period's transaction count."""

    period: str
    pairs: int = 0
    revenue: float = 0.0
    transactions: int = 0


class CampaignBreakdown(CamelModel):
    campaign_code: str | None
    campaign_name: str | None = Field(None, description="Null when the code has no lookup entry")
    qty_promo: int = 0
    qty_all: int = 0
    revenue: float = 0.0
    discount_total: float = 0.0
    transactions: int = 0
    promo_share: float = 0.0


class PromoStoreRow(CamelModel):
    toko: str | None
    branch: str | None = None
    qty_promo: int = 0
    qty_all: int = 0
    revenue: float = 0.0
    discount_total: float = 0.0
    transactions: int = 0
    promo_share: float = 0.0


class SpgRow(CamelModel):
    """Leaderboard row for one sales promotion staff member."""

    spg: str
    qty_promo: int = 0
    qty_all: int = 0
    revenue: float = 0.0
    transactions: int = 0


class CampaignOption(CamelModel):
    code: str
    name: str


class PromoResponse(CamelModel):
    """Promo view body: promo slice plus an overall comparison set."""

    kpis: PromoKpis
    overall_kpis: KpiSummary
    time_series: list[PromoPeriodPoint] = Field(default_factory=list)
    overall_time_series: list[OverallPeriodPoint] = Field(default_factory=list)
    by_campaign: list[CampaignBreakdown] = Field(default_factory=list)
    stores: list[PromoStoreRow] = Field(default_factory=list)
    overall_stores: list[StoreRow] = Field(default_factory=list)
    spg_leaderboard: list[SpgRow] = Field(default_factory=list)
    campaign_options: list[CampaignOption] = Field(default_factory=list)
