"""Service layer for the promo view.

The promo view issues a dozen small queries. They share one session and run
one after another, which keeps a single pooled connection per request.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from salesboard.core.config import get_settings
from salesboard.core.executor import QueryExecutor
from salesboard.core.logging import get_logger
from salesboard.features.analytics.assembler import (
    assemble_kpis,
    assemble_stores,
    first_row,
    format_period,
    merge_by_key,
)
from salesboard.features.analytics.metrics import (
    atu,
    atv,
    promo_share,
    safe_ratio,
    to_int,
    to_number,
)
from salesboard.features.filtering.schemas import FilterSpec
from salesboard.features.promo.planner import plan_promo, promo_context, render_promo
from salesboard.features.promo.schemas import (
    CampaignBreakdown,
    CampaignOption,
    OverallPeriodPoint,
    PromoKpis,
    PromoPeriodPoint,
    PromoResponse,
    PromoStoreRow,
    SpgRow,
)

logger = get_logger(__name__)

Row = Mapping[str, Any]


def assemble_promo_kpis(row: Row) -> PromoKpis:
    qty_promo = to_int(row.get("qty_promo"))
    qty_all = to_int(row.get("qty_all"))
    revenue = to_number(row.get("revenue"))
    transactions = to_int(row.get("transactions"))
    return PromoKpis(
        qty_promo=qty_promo,
        qty_all=qty_all,
        revenue=revenue,
        discount_total=to_number(row.get("discount_total")),
        transactions=transactions,
        promo_share=promo_share(qty_promo, qty_all),
        atu=atu(qty_all, transactions),
        asp=safe_ratio(revenue, qty_all),
        atv=atv(revenue, transactions),
    )


def assemble_promo_response(results: Mapping[str, Sequence[Row]]) -> PromoResponse:
    """Build the promo body from named result sets.

    Overall time series and store rows are merged with transaction counts by
    period and by store; missing counts are 0.
    """

    def rows(name: str) -> Sequence[Row]:
        return results.get(name) or []

    options = [
        CampaignOption(code=str(row["code"]), name=str(row["name"]))
        for row in rows("campaign_options")
    ]
    names = {option.code: option.name for option in options}

    overall_txn_by_period = [
        {**row, "period": format_period(row.get("period"))}
        for row in rows("overall_time_series_transactions")
    ]
    overall_series = merge_by_key(
        ({**row, "period": format_period(row.get("period"))} for row in rows("overall_time_series")),
        overall_txn_by_period,
        key="period",
        field="transactions",
    )

    return PromoResponse(
        kpis=assemble_promo_kpis(first_row(rows("promo_kpis"))),
        overall_kpis=assemble_kpis(
            first_row(rows("overall_sales")), first_row(rows("overall_transactions"))
        ),
        time_series=[
            PromoPeriodPoint(
                period=format_period(row.get("period")),
                qty_promo=to_int(row.get("qty_promo")),
                qty_all=to_int(row.get("qty_all")),
                revenue=to_number(row.get("revenue")),
                discount_total=to_number(row.get("discount_total")),
                transactions=to_int(row.get("transactions")),
                promo_share=promo_share(row.get("qty_promo"), row.get("qty_all")),
            )
            for row in rows("promo_time_series")
        ],
        overall_time_series=[
            OverallPeriodPoint(
                period=row["period"],
                pairs=to_int(row.get("pairs")),
                revenue=to_number(row.get("revenue")),
                transactions=to_int(row["transactions"]),
            )
            for row in overall_series
        ],
        by_campaign=[
            CampaignBreakdown(
                campaign_code=row.get("campaign_code"),
                campaign_name=names.get(row.get("campaign_code")),
                qty_promo=to_int(row.get("qty_promo")),
                qty_all=to_int(row.get("qty_all")),
                revenue=to_number(row.get("revenue")),
                discount_total=to_number(row.get("discount_total")),
                transactions=to_int(row.get("transactions")),
                promo_share=promo_share(row.get("qty_promo"), row.get("qty_all")),
            )
            for row in rows("by_campaign")
        ],
        stores=[
            PromoStoreRow(
                toko=row.get("toko"),
                branch=row.get("branch"),
                qty_promo=to_int(row.get("qty_promo")),
                qty_all=to_int(row.get("qty_all")),
                revenue=to_number(row.get("revenue")),
                discount_total=to_number(row.get("discount_total")),
                transactions=to_int(row.get("transactions")),
                promo_share=promo_share(row.get("qty_promo"), row.get("qty_all")),
            )
            for row in rows("promo_stores")
        ],
        overall_stores=assemble_stores(rows("overall_stores"), rows("overall_store_transactions")),
        spg_leaderboard=[
            SpgRow(
                spg=str(row.get("spg")),
                qty_promo=to_int(row.get("qty_promo")),
                qty_all=to_int(row.get("qty_all")),
                revenue=to_number(row.get("revenue")),
                transactions=to_int(row.get("transactions")),
            )
            for row in rows("spg_leaderboard")
        ],
        campaign_options=options,
    )


class PromoService:
    """Builds the promo view on top of a QueryExecutor."""

    def __init__(self) -> None:
        self.settings = get_settings()

    async def build_promo(self, executor: QueryExecutor, filters: FilterSpec) -> PromoResponse:
        """Compute the promo view.

        Args:
            executor: Query executor.
            filters: Request filters; only date, branch, store and campaign apply.

        Returns:
            Promo body.
        """
        filters = promo_context(filters)
        plans = plan_promo(filters, spg_limit=self.settings.spg_leaderboard_limit)
        results = await executor.fetch_sequential(render_promo(plans))
        response = assemble_promo_response(results)

        logger.info(
            "promo.view_built",
            queries=len(plans) + 1,
            campaigns=len(response.by_campaign),
            promo_share=round(response.kpis.promo_share, 4),
            filters=sorted(d.value for d in filters.categories),
        )
        return response
