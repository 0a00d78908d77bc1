"""Query-parameter parsing into a FilterSpec.

Every malformed value is coerced to a safe default instead of being
rejected: filter and sort parameters come from dashboard UI state.
"""

from collections.abc import Mapping
from datetime import date
from enum import Enum
from typing import TypeVar

from fastapi import Request

from salesboard.core.config import get_settings
from salesboard.core.logging import get_logger
from salesboard.features.filtering.schemas import (
    DEFAULT_SORT_KEY,
    DETAIL_SORT_KEYS,
    DetailMode,
    Dimension,
    FilterSpec,
    Granularity,
    SortDirection,
)
from salesboard.shared.schemas import PaginationParams

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)


def parse_date(value: str | None) -> date | None:
    """Parse an ISO date; anything unparseable means unbounded."""
    if not value or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        logger.debug("filters.invalid_date", value=value)
        return None


def parse_multi(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated list, dropping blank tokens and duplicates."""
    if not value:
        return ()
    tokens = (token.strip() for token in value.split(","))
    return tuple(dict.fromkeys(token for token in tokens if token))


def parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_enum(
    enum_cls: type[E], value: str | None, default: E
) -> E:
    if value is None:
        return default
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return default


def parse_filters(
    params: Mapping[str, str],
    *,
    default_page_size: int = 50,
    max_page_size: int = 200,
    max_rank: int = 100,
) -> FilterSpec:
    """Build a FilterSpec from a flat query-parameter map.

    Args:
        params: Query parameters (a Starlette ``QueryParams`` works as is).
        default_page_size: Page size when ``limit`` is absent or invalid.
        max_page_size: Upper bound for ``limit``.
        max_rank: Upper bound for ``top``.

    Returns:
        Normalized filter specification.
    """
    categories: dict[Dimension, tuple[str, ...]] = {}
    for dimension in Dimension:
        values = parse_multi(params.get(dimension.value))
        if values:
            categories[dimension] = values

    search = (params.get("q") or "").strip() or None
    mode = _parse_enum(DetailMode, params.get("mode"), DetailMode.KODE)

    sort_key = (params.get("sort") or "").strip()
    if sort_key not in DETAIL_SORT_KEYS[mode]:
        if sort_key:
            logger.debug("filters.sort_fallback", requested=sort_key, mode=mode.value)
        sort_key = DEFAULT_SORT_KEY

    pagination = PaginationParams.clamped(
        page=parse_int(params.get("page"), 1),
        page_size=parse_int(params.get("limit"), default_page_size),
        max_page_size=max_page_size,
    )

    top = parse_int(params.get("top"), 0)
    rank_top = min(top, max_rank) if top >= 1 else None

    return FilterSpec(
        date_from=parse_date(params.get("from")),
        date_to=parse_date(params.get("to")),
        categories=categories,
        search=search,
        exclude_non_merchandise=params.get("excludeNonSku") != "0",
        granularity=_parse_enum(Granularity, params.get("period"), Granularity.DAILY),
        mode=mode,
        sort_key=sort_key,
        sort_direction=_parse_enum(SortDirection, params.get("dir"), SortDirection.DESC),
        pagination=pagination,
        export_all=params.get("export") == "all",
        rank_top=rank_top,
    )


async def get_filter_spec(request: Request) -> FilterSpec:
    """FastAPI dependency: parse the request's query string."""
    settings = get_settings()
    return parse_filters(
        request.query_params,
        default_page_size=settings.detail_default_page_size,
        max_page_size=settings.detail_max_page_size,
        max_rank=settings.rank_limit,
    )
