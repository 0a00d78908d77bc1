"""Result assembly: raw executor rows -> typed response models.

Every numeric field is coerced explicitly (drivers hand back Decimal, and
some views return numeric strings). Dimension values pass through
untouched, nulls included.
"""

import datetime
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from salesboard.features.analytics.metrics import (
    asp,
    atu,
    atv,
    bucket_prices,
    to_int,
    to_number,
)
from salesboard.features.analytics.schemas import (
    ArticleRank,
    BreakdownItem,
    DashboardResponse,
    DetailResponse,
    DetailRow,
    DetailTotals,
    FilterOptionsResponse,
    KpiSummary,
    PeriodPoint,
    PriceBucket,
    StoreRow,
)
from salesboard.shared.schemas import PaginationParams

Row = Mapping[str, Any]


def first_row(rows: Sequence[Row]) -> Row:
    """The single row of a scalar aggregate, or an empty mapping."""
    return rows[0] if rows else {}


def format_period(value: Any) -> str:
    """Render a period bucket as YYYY-MM-DD."""
    if isinstance(value, datetime.datetime):
        return value.date().isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()
    return str(value)[:10]


def merge_by_key(
    left: Iterable[Row],
    right: Iterable[Row],
    key: str,
    field: str,
) -> list[dict[str, Any]]:
    """Left-outer merge of ``right[field]`` into ``left`` rows by ``key``.

    Every left row is kept exactly once, in order; a key missing from
    ``right`` gets ``field = 0``.

    Args:
        left: Primary rows (e.g. per-store sales).
        right: Secondary rows (e.g. per-store transaction counts).
        key: Join key present in both.
        field: Value copied from right to left.

    Returns:
        New dicts, one per left row.
    """
    lookup = {row.get(key): row.get(field) for row in right}
    return [{**row, field: lookup.get(row.get(key)) or 0} for row in left]


# =============================================================================
# Dashboard
# =============================================================================


def assemble_kpis(sales: Row, transactions: Row) -> KpiSummary:
    revenue = to_number(sales.get("revenue"))
    pairs = to_int(sales.get("pairs"))
    txn = to_int(transactions.get("transactions"))
    return KpiSummary(
        revenue=revenue,
        pairs=pairs,
        transactions=txn,
        atu=atu(pairs, txn),
        asp=asp(revenue, pairs),
        atv=atv(revenue, txn),
    )


def assemble_time_series(rows: Iterable[Row]) -> list[PeriodPoint]:
    return [
        PeriodPoint(
            period=format_period(row.get("period")),
            pairs=to_int(row.get("pairs")),
            revenue=to_number(row.get("revenue")),
        )
        for row in rows
    ]


def assemble_stores(sales_rows: Iterable[Row], transaction_rows: Iterable[Row]) -> list[StoreRow]:
    merged = merge_by_key(sales_rows, transaction_rows, key="toko", field="transactions")
    stores = []
    for row in merged:
        pairs = to_int(row.get("pairs"))
        revenue = to_number(row.get("revenue"))
        txn = to_int(row["transactions"])
        stores.append(
            StoreRow(
                toko=row.get("toko"),
                branch=row.get("branch"),
                pairs=pairs,
                revenue=revenue,
                transactions=txn,
                atu=atu(pairs, txn),
                asp=asp(revenue, pairs),
                atv=atv(revenue, txn),
            )
        )
    return stores


def assemble_breakdown(rows: Iterable[Row], key: str) -> list[BreakdownItem]:
    return [
        BreakdownItem(
            value=row.get(key),
            pairs=to_int(row.get("pairs")),
            revenue=to_number(row.get("revenue")),
        )
        for row in rows
    ]


def assemble_price_buckets(rows: Iterable[Row]) -> list[PriceBucket]:
    return [
        PriceBucket(
            label=band.label,
            low=band.low,
            high=None if band.high == float("inf") else int(band.high),
            pairs=pairs,
        )
        for band, pairs in bucket_prices(rows)
    ]


def assemble_ranking(rows: Iterable[Row]) -> list[ArticleRank]:
    return [
        ArticleRank(
            article=row.get("article") if row.get("article") is not None else row.get("kode_besar"),
            kode_besar=row.get("kode_besar"),
            kode_mix=row.get("kode_mix"),
            pairs=to_int(row.get("pairs")),
            revenue=to_number(row.get("revenue")),
        )
        for row in rows
    ]


BREAKDOWN_KEYS: dict[str, str] = {
    "by_branch": "branch",
    "by_series": "series",
    "by_gender": "gender",
    "by_tier": "tier",
    "by_tipe": "tipe",
    "by_color": "color",
    "by_size": "size",
}


def assemble_dashboard(results: Mapping[str, Sequence[Row]]) -> DashboardResponse:
    """Build the dashboard body from the executor's named results.

    A missing result set is treated as empty so the key set never changes.
    """

    def rows(name: str) -> Sequence[Row]:
        return results.get(name) or []

    last_update = first_row(rows("last_update")).get("last_date")

    return DashboardResponse(
        kpis=assemble_kpis(first_row(rows("kpi_sales")), first_row(rows("kpi_transactions"))),
        time_series=assemble_time_series(rows("time_series")),
        stores=assemble_stores(rows("store_sales"), rows("store_transactions")),
        by_price=assemble_price_buckets(rows("price_points")),
        rank_by_article=assemble_ranking(rows("rank_by_article")),
        last_update=last_update,
        **{field: assemble_breakdown(rows(field), key) for field, key in BREAKDOWN_KEYS.items()},
    )


# =============================================================================
# Detail
# =============================================================================


def assemble_detail_rows(rows: Iterable[Row]) -> list[DetailRow]:
    return [
        DetailRow(
            **{k: v for k, v in row.items() if k not in ("pairs", "revenue", "avg_price")},
            pairs=to_int(row.get("pairs")),
            revenue=to_number(row.get("revenue")),
            avg_price=to_number(row.get("avg_price")),
        )
        for row in rows
    ]


def assemble_detail(
    rows: Sequence[Row],
    count_row: Row,
    pagination: PaginationParams,
) -> DetailResponse:
    """Paged detail body; totals come from the separate count query."""
    total = to_int(count_row.get("total"))
    return DetailResponse(
        rows=assemble_detail_rows(rows),
        total=total,
        page=pagination.page,
        pages=pagination.page_count(total),
        totals=DetailTotals(
            pairs=to_int(count_row.get("pairs")),
            revenue=to_number(count_row.get("revenue")),
        ),
    )


def assemble_export(rows: Sequence[Row]) -> DetailResponse:
    """Unpaged detail body; totals are summed from the rows themselves."""
    detail_rows = assemble_detail_rows(rows)
    return DetailResponse(
        rows=detail_rows,
        total=len(detail_rows),
        page=1,
        pages=1,
        totals=DetailTotals(
            pairs=sum(row.pairs for row in detail_rows),
            revenue=sum(row.revenue for row in detail_rows),
        ),
    )


# =============================================================================
# Filter options
# =============================================================================


def assemble_filter_options(
    results: Mapping[str, Sequence[Row]],
    columns: Mapping[str, str],
) -> FilterOptionsResponse:
    """Collect distinct values per option field.

    Args:
        results: Executor rows keyed by option field.
        columns: Column holding the value, per option field.
    """
    options: dict[str, list[str]] = {}
    for field, column in columns.items():
        values = (row.get(column) for row in results.get(field) or [])
        options[field] = [str(value) for value in values if value not in (None, "")]
    return FilterOptionsResponse(**options)
