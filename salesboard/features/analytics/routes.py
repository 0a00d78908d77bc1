"""API routes for the dashboard, detail and filter-options views.

All three are query-parameter driven and share one filter vocabulary:
comma-separated multi-value filters, ISO dates, and lenient paging/sort
directives that fall back to defaults instead of failing.
"""

from fastapi import APIRouter, Depends, Response

from salesboard.core.cache import (
    NO_STORE,
    ResponseCache,
    cache_control,
    get_dashboard_cache,
    get_detail_cache,
    get_filter_options_cache,
)
from salesboard.core.executor import QueryExecutor, get_query_executor
from salesboard.core.logging import get_logger
from salesboard.features.analytics.planner import filter_options_context
from salesboard.features.analytics.schemas import (
    DashboardResponse,
    DetailResponse,
    FilterOptionsResponse,
)
from salesboard.features.analytics.service import AnalyticsService
from salesboard.features.filtering.parser import get_filter_spec
from salesboard.features.filtering.schemas import FilterSpec

logger = get_logger(__name__)

router = APIRouter(tags=["analytics"])


# =============================================================================
# Dashboard
# =============================================================================


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Dashboard aggregates",
    description="""
KPI cards, time series, store table, breakdowns, price buckets and the top
article ranking for one filter context.

**Filters** (all optional, multi-value filters are comma-separated):
- `from`, `to`: inclusive ISO dates
- `branch`, `store`, `series`, `gender`, `tier`, `color`, `tipe`
- `payment`: narrows transaction counts only
- `period`: `daily` (default), `weekly` or `monthly`
- `top`: article ranking size, clamped to the configured maximum

Filters a source cannot honour are ignored for that source: product
filters do not affect transaction counts.

**Example**: `GET /dashboard?from=2025-01-01&to=2025-01-31&branch=Bali&period=weekly`
""",
)
async def get_dashboard(
    response: Response,
    filters: FilterSpec = Depends(get_filter_spec),
    executor: QueryExecutor = Depends(get_query_executor),
    cache: ResponseCache = Depends(get_dashboard_cache),
) -> DashboardResponse:
    """Compute (or serve cached) dashboard aggregates.

    Args:
        response: Outgoing response (for cache headers).
        filters: Parsed filters.
        executor: Query executor.
        cache: Dashboard response cache.

    Returns:
        Dashboard body.
    """
    service = AnalyticsService()
    body = await cache.get_or_set(
        filters.aggregate_view().cache_key(),
        lambda: service.build_dashboard(executor, filters),
    )
    response.headers["Cache-Control"] = cache_control(cache.default_ttl)
    return body


# =============================================================================
# Detail
# =============================================================================


@router.get(
    "/detail",
    response_model=DetailResponse,
    summary="Grouped detail table",
    description="""
Sale lines grouped by store and product, with pagination, sorting and
grand totals.

**Parameters**:
- `mode`: `kode` (default, size level) or `kode_besar` (article level)
- `q`: case-insensitive search over product code, article and store
- `sort`: any grouped column or `pairs`, `revenue`, `avg_price`;
  unknown values fall back to `revenue`
- `dir`: `asc` or `desc` (default)
- `page` (default 1), `limit` (default 50, clamped to 1-200)
- `export=all`: every matching row, unpaginated and never cached
- `excludeNonSku=0`: include bags, vouchers and other non-merchandise lines

**Example**: `GET /detail?mode=kode_besar&branch=Bali&sort=pairs&dir=desc&page=2`
""",
)
async def get_detail(
    response: Response,
    filters: FilterSpec = Depends(get_filter_spec),
    executor: QueryExecutor = Depends(get_query_executor),
    cache: ResponseCache = Depends(get_detail_cache),
) -> DetailResponse:
    """Compute (or serve cached) detail rows.

    Args:
        response: Outgoing response (for cache headers).
        filters: Parsed filters, sort and paging.
        executor: Query executor.
        cache: Detail response cache (bypassed for exports).

    Returns:
        Detail body.
    """
    service = AnalyticsService()

    if filters.export_all:
        body = await service.build_detail(executor, filters)
        response.headers["Cache-Control"] = NO_STORE
        return body

    body = await cache.get_or_set(
        filters.model_copy(update={"rank_top": None}).cache_key(),
        lambda: service.build_detail(executor, filters),
    )
    response.headers["Cache-Control"] = cache_control(cache.default_ttl)
    return body


# =============================================================================
# Filter options
# =============================================================================


@router.get(
    "/filter-options",
    response_model=FilterOptionsResponse,
    summary="Distinct filter values",
    description="""
Distinct, non-empty values per filter dimension under the current filter
context. Each dimension's own filter is left out of its context, so
selecting `branch=Bali` still lists every branch while narrowing stores.

**Example**: `GET /filter-options?branch=Bali&from=2025-01-01`
""",
)
async def get_filter_options(
    response: Response,
    filters: FilterSpec = Depends(get_filter_spec),
    executor: QueryExecutor = Depends(get_query_executor),
    cache: ResponseCache = Depends(get_filter_options_cache),
) -> FilterOptionsResponse:
    """Compute (or serve cached) filter options.

    Args:
        response: Outgoing response (for cache headers).
        filters: Parsed filters.
        executor: Query executor.
        cache: Filter-options response cache.

    Returns:
        Option lists per dimension.
    """
    service = AnalyticsService()
    body = await cache.get_or_set(
        filter_options_context(filters).cache_key(),
        lambda: service.list_filter_options(executor, filters),
    )
    response.headers["Cache-Control"] = cache_control(cache.default_ttl)
    return body
