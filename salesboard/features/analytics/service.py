"""Service layer for the dashboard, detail and filter-options views.

Each method plans the view's queries from one FilterSpec, renders them,
hands the whole batch to the executor and assembles the response. No
method returns a partially assembled body: any failed or timed-out query
fails the call.
"""

from salesboard.core.config import get_settings
from salesboard.core.executor import QueryExecutor
from salesboard.core.logging import get_logger
from salesboard.features.analytics.assembler import (
    assemble_dashboard,
    assemble_detail,
    assemble_export,
    assemble_filter_options,
    first_row,
)
from salesboard.features.analytics.planner import (
    OPTION_QUERIES,
    filter_options_context,
    plan_dashboard,
    plan_detail,
    plan_filter_options,
    render_count,
    render_plan,
)
from salesboard.features.analytics.schemas import (
    DashboardResponse,
    DetailResponse,
    FilterOptionsResponse,
)
from salesboard.features.filtering.schemas import FilterSpec

logger = get_logger(__name__)


class AnalyticsService:
    """Builds analytics views on top of a QueryExecutor.

    The executor is passed per call so routes can inject it (and tests can
    substitute a fake).
    """

    def __init__(self) -> None:
        """Initialize analytics service."""
        self.settings = get_settings()

    async def build_dashboard(self, executor: QueryExecutor, filters: FilterSpec) -> DashboardResponse:
        """Compute every dashboard aggregate concurrently.

        The non-merchandise exclusion always applies here; only the detail
        view may opt out of it.

        Args:
            executor: Query executor.
            filters: Request filters.

        Returns:
            Dashboard body.
        """
        filters = filters.aggregate_view()
        plans = plan_dashboard(filters, rank_limit=filters.rank_top or self.settings.rank_limit)
        results = await executor.fetch_all({plan.name: render_plan(plan) for plan in plans})
        response = assemble_dashboard(results)

        logger.info(
            "analytics.dashboard_built",
            queries=len(plans),
            granularity=filters.granularity.value,
            filters=sorted(d.value for d in filters.categories),
            periods=len(response.time_series),
            stores=len(response.stores),
        )
        return response

    async def build_detail(self, executor: QueryExecutor, filters: FilterSpec) -> DetailResponse:
        """Compute one page of the detail table, or all rows for export.

        The page query and the count query are independent and run
        concurrently.

        Args:
            executor: Query executor.
            filters: Request filters including sort and paging.

        Returns:
            Detail body.
        """
        plan = plan_detail(filters)

        if filters.export_all:
            results = await executor.fetch_all({"detail": render_plan(plan)})
            response = assemble_export(results["detail"])
        else:
            results = await executor.fetch_all(
                {"detail": render_plan(plan), "detail_count": render_count(plan)}
            )
            response = assemble_detail(
                results["detail"],
                first_row(results["detail_count"]),
                filters.pagination,
            )

        logger.info(
            "analytics.detail_built",
            mode=filters.mode.value,
            sort=filters.sort_key,
            direction=filters.sort_direction.value,
            page=response.page,
            rows=len(response.rows),
            total=response.total,
            export=filters.export_all,
        )
        return response

    async def list_filter_options(
        self, executor: QueryExecutor, filters: FilterSpec
    ) -> FilterOptionsResponse:
        """Distinct values per dimension under the other active filters.

        Args:
            executor: Query executor.
            filters: Request filters.

        Returns:
            Option lists per dimension.
        """
        plans = plan_filter_options(filter_options_context(filters))
        results = await executor.fetch_all({plan.name: render_plan(plan) for plan in plans})
        response = assemble_filter_options(
            results, {field: column for field, _, _, column in OPTION_QUERIES}
        )

        logger.info(
            "analytics.filter_options_built",
            counts={field: len(getattr(response, field)) for field, *_ in OPTION_QUERIES},
        )
        return response
