"""Aggregation planner and SQL renderer.

Planning and rendering are separate steps:

1. ``plan_*`` functions decide *what* to aggregate for a view: one
   ``QueryPlan`` per query, each carrying the predicate set for its source,
   group-by keys, measures, ordering and paging.
2. ``render_plan`` turns a plan into a SQLAlchemy ``Select``. It is the only
   place where predicate values meet SQL, and it binds every value as a
   named parameter (``p1``, ``p2``, ...) in placeholder order.

Join rule for the SKU classification lookup (tipe):
- tipe filter present: INNER JOIN, unclassified rows are dropped
- tipe grouped/listed without a filter: LEFT JOIN, unclassified rows form a
  null bucket
- otherwise: no join
"""

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from sqlalchemy import (
    Date,
    Select,
    String,
    and_,
    bindparam,
    case,
    cast,
    func,
    literal_column,
    or_,
    select,
)
from sqlalchemy.sql.elements import ColumnElement

from salesboard.features.data_platform.models import (
    PromoSale,
    SaleLine,
    SkuClassification,
    TransactionCount,
)
from salesboard.features.filtering.predicates import (
    CLASSIFICATION_COLUMN,
    CLASSIFIED_SOURCES,
    NON_MERCHANDISE_PATTERNS,
    Operator,
    Predicate,
    PredicateSet,
    build_predicates,
)
from salesboard.features.filtering.schemas import (
    DetailMode,
    Dimension,
    FilterSpec,
    Granularity,
    SortDirection,
    Source,
)

SOURCE_MODELS: dict[Source, Any] = {
    Source.SALE_LINE: SaleLine,
    Source.TRANSACTION: TransactionCount,
    Source.PROMO: PromoSale,
}

ZERO = literal_column("0")
EMPTY_STRING = literal_column("''")
UNATTRIBUTED = literal_column("'Unknown'")


# =============================================================================
# Measures
# =============================================================================


def _sum(column_name: str) -> Callable[[Any], ColumnElement[Any]]:
    return lambda model: func.sum(getattr(model, column_name))


def _avg_price(model: Any) -> ColumnElement[Any]:
    pairs = func.sum(model.pairs)
    return case((pairs > ZERO, func.sum(model.revenue) / pairs), else_=ZERO)


MEASURES: dict[str, Callable[[Any], ColumnElement[Any]]] = {
    "pairs": _sum("pairs"),
    "revenue": _sum("revenue"),
    "transactions": _sum("txn_count"),
    "qty_promo": _sum("qty_promo"),
    "qty_all": _sum("qty_all"),
    "discount_total": _sum("discount_total"),
    "branch": lambda model: func.max(model.branch),
    "last_date": lambda model: func.max(model.sale_date),
    "avg_price": _avg_price,
}

PAIRS_REVENUE = ("pairs", "revenue")

TRUNCATION_UNITS: dict[Granularity, str | None] = {
    Granularity.DAILY: None,
    Granularity.WEEKLY: "week",
    Granularity.MONTHLY: "month",
}


# =============================================================================
# Plan
# =============================================================================


class JoinMode(str, Enum):
    """How the classification lookup is joined."""

    NONE = "none"
    INNER = "inner"
    LEFT = "left"


@dataclass(frozen=True)
class Ordering:
    """One ORDER BY term; nulls always sort last."""

    key: str
    descending: bool = True


@dataclass(frozen=True)
class QueryPlan:
    """Typed description of one aggregate query.

    Attributes:
        name: Result key the executor files the rows under.
        predicates: WHERE fragments for the plan's source.
        group_by: Group keys: ``period``, ``tipe`` or a column of the source.
        measures: Aggregates from ``MEASURES``.
        order_by: Orderings over group keys or measures.
        granularity: Truncation for the ``period`` key.
        having_positive: Measures that must be > 0 after grouping.
        not_blank: Group keys that must be neither null nor empty.
        exclude_unattributed: Group keys that must not be ``'Unknown'``.
        limit: Row cap.
        offset: Rows to skip.
    """

    name: str
    predicates: PredicateSet
    group_by: tuple[str, ...] = ()
    measures: tuple[str, ...] = ()
    order_by: tuple[Ordering, ...] = ()
    granularity: Granularity = Granularity.DAILY
    having_positive: tuple[str, ...] = ()
    not_blank: tuple[str, ...] = ()
    exclude_unattributed: tuple[str, ...] = ()
    limit: int | None = None
    offset: int | None = None

    @property
    def source(self) -> Source:
        return self.predicates.source

    @property
    def join(self) -> JoinMode:
        if self.predicates.needs_join:
            return JoinMode.INNER
        if self.source in CLASSIFIED_SOURCES and CLASSIFICATION_COLUMN in (
            *self.group_by,
            *self.not_blank,
        ):
            return JoinMode.LEFT
        return JoinMode.NONE


# =============================================================================
# Renderer
# =============================================================================


def period_column(column: Any, granularity: Granularity) -> ColumnElement[Any]:
    """Sale date truncated to the start of its bucket."""
    unit = TRUNCATION_UNITS[granularity]
    if unit is None:
        return column
    # Unit is inlined so SELECT and GROUP BY render the identical expression.
    return cast(func.date_trunc(literal_column(f"'{unit}'"), column), Date)


def _predicate_column(model: Any, name: str) -> Any:
    if name == CLASSIFICATION_COLUMN:
        return SkuClassification.tipe
    return getattr(model, name)


def _key_column(plan: QueryPlan, model: Any, key: str) -> Any:
    if key == "period":
        return period_column(model.sale_date, plan.granularity)
    return _predicate_column(model, key)


def _excludes_patterns(column: Any, patterns: tuple[str, ...]) -> ColumnElement[bool]:
    return or_(
        column.is_(None),
        and_(*(column.not_ilike(literal_column(f"'%{pattern}%'")) for pattern in patterns)),
    )


def render_predicate(predicate: Predicate, model: Any) -> ColumnElement[bool]:
    """Render one fragment, binding its values under its placeholder names."""
    if predicate.operator is Operator.EXCLUDE:
        return and_(
            *(
                _excludes_patterns(getattr(model, name), NON_MERCHANDISE_PATTERNS[name])
                for name in predicate.columns
            )
        )

    if predicate.operator is Operator.CONTAINS:
        (placeholder,) = predicate.placeholders
        pattern = bindparam(placeholder, predicate.values[0], type_=String())
        return or_(*(getattr(model, name).ilike(pattern) for name in predicate.columns))

    column = _predicate_column(model, predicate.columns[0])
    binds = [
        bindparam(placeholder, value, type_=column.type)
        for placeholder, value in zip(predicate.placeholders, predicate.values, strict=True)
    ]
    if predicate.operator is Operator.IN:
        return column.in_(binds)
    if predicate.operator is Operator.GTE:
        return column >= binds[0]
    if predicate.operator is Operator.LTE:
        return column <= binds[0]
    raise ValueError(f"Unsupported operator: {predicate.operator}")


def render_plan(plan: QueryPlan) -> Select[Any]:
    """Render a plan into a SELECT statement.

    Args:
        plan: Query plan.

    Returns:
        Statement whose user values are all named bind parameters.
    """
    model = SOURCE_MODELS[plan.source]
    keys = [_key_column(plan, model, key).label(key) for key in plan.group_by]
    measures = [MEASURES[name](model).label(name) for name in plan.measures]
    stmt = select(*keys, *measures).select_from(model)

    join = plan.join
    if join is not JoinMode.NONE:
        stmt = stmt.join(
            SkuClassification,
            model.kode_besar == SkuClassification.kode_besar,
            isouter=join is JoinMode.LEFT,
        )

    for predicate in plan.predicates.predicates:
        stmt = stmt.where(render_predicate(predicate, model))
    for key in plan.not_blank:
        column = _key_column(plan, model, key)
        stmt = stmt.where(column.is_not(None), column != EMPTY_STRING)
    for key in plan.exclude_unattributed:
        stmt = stmt.where(_key_column(plan, model, key) != UNATTRIBUTED)

    if plan.group_by:
        stmt = stmt.group_by(*(_key_column(plan, model, key) for key in plan.group_by))
    for name in plan.having_positive:
        stmt = stmt.having(MEASURES[name](model) > ZERO)

    for ordering in plan.order_by:
        if ordering.key in plan.measures:
            expression = MEASURES[ordering.key](model)
        else:
            expression = _key_column(plan, model, ordering.key)
        expression = expression.desc() if ordering.descending else expression.asc()
        stmt = stmt.order_by(expression.nulls_last())

    if plan.limit is not None:
        stmt = stmt.limit(plan.limit)
    if plan.offset:
        stmt = stmt.offset(plan.offset)
    return stmt


def render_count(plan: QueryPlan) -> Select[Any]:
    """Count the groups a plan yields and sum their pairs and revenue."""
    grouped = render_plan(replace(plan, order_by=(), limit=None, offset=None)).subquery("grouped")
    return select(
        func.count().label("total"),
        func.coalesce(func.sum(grouped.c.pairs), ZERO).label("pairs"),
        func.coalesce(func.sum(grouped.c.revenue), ZERO).label("revenue"),
    )


# =============================================================================
# Dashboard
# =============================================================================


def _breakdown(name: str, predicates: PredicateSet, key: str, ordering: Ordering) -> QueryPlan:
    return QueryPlan(
        name,
        predicates,
        group_by=(key,),
        measures=PAIRS_REVENUE,
        order_by=(ordering,),
    )


def plan_dashboard(filters: FilterSpec, rank_limit: int = 100) -> list[QueryPlan]:
    """Plans for every aggregate on the main dashboard.

    Sale-line plans share one predicate set; transaction plans get their own
    narrower set since that fact has no product columns.
    """
    sales = build_predicates(filters, Source.SALE_LINE)
    transactions = build_predicates(filters, Source.TRANSACTION)
    by_pairs = Ordering("pairs")

    return [
        QueryPlan("kpi_sales", sales, measures=PAIRS_REVENUE),
        QueryPlan("kpi_transactions", transactions, measures=("transactions",)),
        QueryPlan(
            "time_series",
            sales,
            group_by=("period",),
            measures=PAIRS_REVENUE,
            order_by=(Ordering("period", descending=False),),
            granularity=filters.granularity,
        ),
        QueryPlan(
            "store_sales",
            sales,
            group_by=("toko",),
            measures=("branch", *PAIRS_REVENUE),
            order_by=(Ordering("revenue"),),
        ),
        QueryPlan("store_transactions", transactions, group_by=("toko",), measures=("transactions",)),
        _breakdown("by_branch", sales, "branch", Ordering("revenue")),
        _breakdown("by_series", sales, "series", by_pairs),
        _breakdown("by_gender", sales, "gender", by_pairs),
        _breakdown("by_tier", sales, "tier", Ordering("tier", descending=False)),
        _breakdown("by_tipe", sales, CLASSIFICATION_COLUMN, by_pairs),
        _breakdown("by_color", sales, "color", by_pairs),
        _breakdown("by_size", sales, "size", by_pairs),
        QueryPlan(
            "price_points",
            sales,
            group_by=("kode",),
            measures=PAIRS_REVENUE,
            having_positive=("pairs",),
        ),
        QueryPlan(
            "rank_by_article",
            sales,
            group_by=("article", "kode_besar", "kode_mix"),
            measures=PAIRS_REVENUE,
            order_by=(Ordering("revenue"),),
            limit=rank_limit,
        ),
        # Freshness of the mart as a whole, so no filters apply.
        QueryPlan("last_update", PredicateSet.empty(Source.SALE_LINE), measures=("last_date",)),
    ]


# =============================================================================
# Detail
# =============================================================================

DETAIL_KEYS: dict[DetailMode, tuple[str, ...]] = {
    DetailMode.KODE: (
        "toko",
        "kode",
        "kode_besar",
        "article",
        "gender",
        "series",
        "color",
        "tipe",
        "tier",
    ),
    DetailMode.KODE_BESAR: (
        "toko",
        "kode_besar",
        "article",
        "gender",
        "series",
        "color",
        "tipe",
        "tier",
    ),
}

DETAIL_MEASURES = ("pairs", "revenue", "avg_price")


def plan_detail(filters: FilterSpec) -> QueryPlan:
    """Plan the grouped detail table (paged unless exporting).

    The requested sort comes first; store and product code follow as
    tie-breakers so pages do not shuffle rows between requests.
    """
    code_key = "kode" if filters.mode is DetailMode.KODE else "kode_besar"
    order_by = (Ordering(filters.sort_key, descending=filters.sort_direction is SortDirection.DESC),)
    order_by += tuple(
        Ordering(key, descending=False) for key in ("toko", code_key) if key != filters.sort_key
    )

    return QueryPlan(
        "detail",
        build_predicates(filters, Source.SALE_LINE),
        group_by=DETAIL_KEYS[filters.mode],
        measures=DETAIL_MEASURES,
        order_by=order_by,
        limit=None if filters.export_all else filters.pagination.limit,
        offset=None if filters.export_all else filters.pagination.offset,
    )


# =============================================================================
# Filter options
# =============================================================================

# (response field, dimension excluded from its own context, source, column)
OPTION_QUERIES: tuple[tuple[str, Dimension, Source, str], ...] = (
    ("branches", Dimension.BRANCH, Source.SALE_LINE, "branch"),
    ("stores", Dimension.STORE, Source.SALE_LINE, "toko"),
    ("series", Dimension.SERIES, Source.SALE_LINE, "series"),
    ("genders", Dimension.GENDER, Source.SALE_LINE, "gender"),
    ("tiers", Dimension.TIER, Source.SALE_LINE, "tier"),
    ("colors", Dimension.COLOR, Source.SALE_LINE, "color"),
    ("tipes", Dimension.TIPE, Source.SALE_LINE, CLASSIFICATION_COLUMN),
    ("payments", Dimension.PAYMENT, Source.TRANSACTION, "payment_type"),
)


def filter_options_context(filters: FilterSpec) -> FilterSpec:
    """Reduce request filters to what the option lists depend on."""
    return filters.aggregate_view().model_copy(
        update={"search": None, "granularity": Granularity.DAILY, "rank_top": None}
    )


def plan_filter_options(filters: FilterSpec) -> list[QueryPlan]:
    """One distinct-values plan per dimension, ignoring that dimension's own filter."""
    context = filters.model_copy(update={"search": None})
    return [
        QueryPlan(
            field,
            build_predicates(context.without(dimension), source),
            group_by=(column,),
            not_blank=(column,),
            order_by=(Ordering(column, descending=False),),
        )
        for field, dimension, source, column in OPTION_QUERIES
    ]
