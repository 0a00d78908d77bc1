"""Tests for promo query plans."""

from salesboard.features.analytics.planner import render_plan
from salesboard.features.filtering.parser import parse_filters
from salesboard.features.filtering.schemas import Dimension, Source
from salesboard.features.promo.planner import (
    campaign_options_statement,
    plan_promo,
    promo_context,
    render_promo,
)


def plans_for(params: dict) -> dict:
    return {plan.name: plan for plan in plan_promo(promo_context(parse_filters(params)))}


class TestPromoContext:
    """Only date, branch, store and campaign apply to the promo view."""

    def test_unrelated_filters_are_dropped(self) -> None:
        """Test product and payment filters do not survive."""
        filters = promo_context(
            parse_filters({"branch": "Bali", "series": "Classic", "payment": "QRIS", "campaign": "B1G1", "q": "x"})
        )

        assert set(filters.categories) == {Dimension.BRANCH, Dimension.CAMPAIGN}
        assert filters.search is None

    def test_equivalent_requests_share_cache_key(self) -> None:
        """Test ignored filters do not fragment the promo cache."""
        first = promo_context(parse_filters({"branch": "Bali", "series": "Classic"}))
        second = promo_context(parse_filters({"branch": "Bali"}))

        assert first.cache_key() == second.cache_key()

    def test_detail_directives_share_cache_key(self) -> None:
        """Test sort, paging, mode, export and ranking size do not fragment the promo cache."""
        first = promo_context(
            parse_filters({"branch": "Bali", "page": "2", "sort": "kode", "dir": "asc", "export": "all", "top": "5"})
        )
        second = promo_context(parse_filters({"branch": "Bali"}))

        assert first.cache_key() == second.cache_key()


class TestPromoPlans:
    """Promo slice vs overall comparison set."""

    def test_campaign_filter_only_on_promo_plans(self) -> None:
        """Test the overall set is not campaign-restricted."""
        plans = plans_for({"campaign": "B1G1", "store": "A"})

        assert "campaign" in plans["promo_kpis"].predicates.dimensions
        assert plans["promo_kpis"].source is Source.PROMO
        assert "campaign" not in plans["overall_sales"].predicates.dimensions
        assert "store" in plans["overall_sales"].predicates.dimensions
        assert "store" in plans["overall_transactions"].predicates.dimensions

    def test_overall_sales_exclude_non_merchandise(self, compile_sql) -> None:
        """Test overall sale-line totals drop bags and vouchers."""
        plans = plans_for({})

        assert "NOT ILIKE" in compile_sql(render_plan(plans["overall_sales"]))

    def test_store_and_period_plans_sum_discount(self) -> None:
        """Test promo stores and periods select discount and receipt totals."""
        plans = plans_for({})

        assert "discount_total" in plans["promo_stores"].measures
        assert "transactions" in plans["promo_stores"].measures
        assert "discount_total" in plans["promo_time_series"].measures
        assert "transactions" in plans["promo_time_series"].measures

    def test_spg_leaderboard(self, compile_sql) -> None:
        """Test unattributed staff are excluded and the board is capped."""
        plan = plans_for({})["spg_leaderboard"]

        sql = compile_sql(render_plan(plan))

        assert plan.limit == 50
        assert "mv_iseller_promo.spg != 'Unknown'" in sql
        assert "ORDER BY sum(mart.mv_iseller_promo.qty_promo) DESC NULLS LAST" in sql

    def test_campaign_options_require_promo_rows(self, compile_sql) -> None:
        """Test campaign options are correlated with the promo fact."""
        sql = compile_sql(campaign_options_statement())

        assert "EXISTS" in sql
        assert "mart.mv_iseller_promo.campaign_code = portal.promo_campaign.campaign_code" in sql
        assert "ORDER BY portal.promo_campaign.campaign_name" in sql

    def test_render_includes_campaign_options(self, bound_placeholders) -> None:
        """Test every plan plus the option lookup is rendered."""
        plans = plan_promo(promo_context(parse_filters({"from": "2025-01-01", "campaign": "B1G1"})))

        statements = render_promo(plans)

        assert list(statements)[-1] == "campaign_options"
        assert len(statements) == len(plans) + 1
        assert bound_placeholders(statements["promo_kpis"]) == ["p1", "p2"]
        assert bound_placeholders(statements["overall_sales"]) == ["p1"]
