"""Query plans for the promo view.

Promo plans read the promo fact filtered by date, branch, store and
campaign. The overall comparison set reads the sale-line and transaction
facts over the same date/branch/store context, without the campaign filter.
"""

from typing import Any

from sqlalchemy import Select, select

from salesboard.features.analytics.planner import (
    PAIRS_REVENUE,
    Ordering,
    QueryPlan,
    render_plan,
)
from salesboard.features.data_platform.models import PromoCampaign, PromoSale
from salesboard.features.filtering.predicates import build_predicates
from salesboard.features.filtering.schemas import Dimension, FilterSpec, Source

PROMO_DIMENSIONS = (Dimension.BRANCH, Dimension.STORE, Dimension.CAMPAIGN)
OVERALL_DIMENSIONS = (Dimension.BRANCH, Dimension.STORE)

PROMO_MEASURES = ("qty_promo", "qty_all", "revenue", "discount_total", "transactions")


def promo_context(filters: FilterSpec) -> FilterSpec:
    """Reduce request filters to what the promo view honours."""
    return filters.only(*PROMO_DIMENSIONS).aggregate_view().model_copy(update={"rank_top": None})


def plan_promo(filters: FilterSpec, spg_limit: int = 50) -> list[QueryPlan]:
    """Plans for the promo slice and the overall comparison set.

    Args:
        filters: Request filters (reduced with ``promo_context``).
        spg_limit: Leaderboard size.

    Returns:
        Plans in execution order.
    """
    promo = build_predicates(filters, Source.PROMO)
    overall_filters = filters.only(*OVERALL_DIMENSIONS)
    sales = build_predicates(overall_filters, Source.SALE_LINE)
    transactions = build_predicates(overall_filters, Source.TRANSACTION)
    by_period = (Ordering("period", descending=False),)

    return [
        QueryPlan("promo_kpis", promo, measures=PROMO_MEASURES),
        QueryPlan(
            "promo_time_series",
            promo,
            group_by=("period",),
            measures=PROMO_MEASURES,
            order_by=by_period,
            granularity=filters.granularity,
        ),
        QueryPlan(
            "by_campaign",
            promo,
            group_by=("campaign_code",),
            measures=PROMO_MEASURES,
            order_by=(Ordering("revenue"),),
        ),
        QueryPlan(
            "promo_stores",
            promo,
            group_by=("toko",),
            measures=("branch", *PROMO_MEASURES),
            order_by=(Ordering("revenue"),),
        ),
        QueryPlan(
            "spg_leaderboard",
            promo,
            group_by=("spg",),
            measures=("qty_promo", "qty_all", "revenue", "transactions"),
            not_blank=("spg",),
            exclude_unattributed=("spg",),
            order_by=(Ordering("qty_promo"),),
            limit=spg_limit,
        ),
        QueryPlan("overall_sales", sales, measures=PAIRS_REVENUE),
        QueryPlan("overall_transactions", transactions, measures=("transactions",)),
        QueryPlan(
            "overall_time_series",
            sales,
            group_by=("period",),
            measures=PAIRS_REVENUE,
            order_by=by_period,
            granularity=filters.granularity,
        ),
        QueryPlan(
            "overall_time_series_transactions",
            transactions,
            group_by=("period",),
            measures=("transactions",),
            granularity=filters.granularity,
        ),
        QueryPlan(
            "overall_stores",
            sales,
            group_by=("toko",),
            measures=("branch", *PAIRS_REVENUE),
            order_by=(Ordering("revenue"),),
        ),
        QueryPlan(
            "overall_store_transactions",
            transactions,
            group_by=("toko",),
            measures=("transactions",),
        ),
    ]


def campaign_options_statement() -> Select[Any]:
    """Campaigns that have at least one promo row, by name."""
    has_rows = select(PromoSale.id).where(PromoSale.campaign_code == PromoCampaign.campaign_code).exists()
    return (
        select(
            PromoCampaign.campaign_code.label("code"),
            PromoCampaign.campaign_name.label("name"),
        )
        .where(has_rows)
        .order_by(PromoCampaign.campaign_name)
    )


def render_promo(plans: list[QueryPlan]) -> dict[str, Select[Any]]:
    """Render promo plans plus the campaign option lookup, in execution order."""
    statements = {plan.name: render_plan(plan) for plan in plans}
    statements["campaign_options"] = campaign_options_statement()
    return statements
