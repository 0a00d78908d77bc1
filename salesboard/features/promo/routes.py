"""API routes for the promo view."""

from fastapi import APIRouter, Depends, Response

from salesboard.core.cache import ResponseCache, cache_control, get_promo_cache
from salesboard.core.executor import QueryExecutor, get_query_executor
from salesboard.features.filtering.parser import get_filter_spec
from salesboard.features.filtering.schemas import FilterSpec
from salesboard.features.promo.planner import promo_context
from salesboard.features.promo.schemas import PromoResponse
from salesboard.features.promo.service import PromoService

router = APIRouter(tags=["promo"])


@router.get(
    "/promo",
    response_model=PromoResponse,
    summary="Promo performance",
    description="""
Promo KPIs, time series, campaign/store/staff breakdowns and campaign
options, plus an overall (not promo-restricted) KPI set, time series and
store table over the same period, branch and store.

**Filters**: `from`, `to`, `branch`, `store`, `campaign` and `period`.
Other filters are ignored by this view.

**Example**: `GET /promo?from=2025-01-01&to=2025-01-31&campaign=B1G1`
""",
)
async def get_promo(
    response: Response,
    filters: FilterSpec = Depends(get_filter_spec),
    executor: QueryExecutor = Depends(get_query_executor),
    cache: ResponseCache = Depends(get_promo_cache),
) -> PromoResponse:
    """Compute (or serve cached) promo view.

    Args:
        response: Outgoing response (for cache headers).
        filters: Parsed filters.
        executor: Query executor.
        cache: Promo response cache.

    Returns:
        Promo body.
    """
    service = PromoService()
    body = await cache.get_or_set(
        promo_context(filters).cache_key(),
        lambda: service.build_promo(executor, filters),
    )
    response.headers["Cache-Control"] = cache_control(cache.default_ttl)
    return body
