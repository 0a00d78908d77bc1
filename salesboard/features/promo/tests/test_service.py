"""Tests for promo assembly and service."""

import pytest

from salesboard.features.filtering.parser import parse_filters
from salesboard.features.promo.service import (
    PromoService,
    assemble_promo_kpis,
    assemble_promo_response,
)


class TestPromoKpis:
    """Promo KPI derivation."""

    def test_known_values(self) -> None:
        """Test promo share and averages from known totals."""
        kpis = assemble_promo_kpis(
            {"qty_promo": 30, "qty_all": 120, "revenue": "9000000", "discount_total": 0, "transactions": 40}
        )

        assert kpis.promo_share == pytest.approx(0.25)
        assert kpis.atu == pytest.approx(3.0)
        assert kpis.asp == pytest.approx(75000)
        assert kpis.atv == pytest.approx(225000)

    def test_empty_row_is_all_zero(self) -> None:
        """Test no promo rows give zeros, not errors."""
        kpis = assemble_promo_kpis({})

        assert kpis.promo_share == 0.0
        assert kpis.atu == 0.0
        assert kpis.asp == 0.0
        assert kpis.atv == 0.0


class TestPromoAssembly:
    """Promo body assembly."""

    def test_overall_series_merges_transactions_by_period(self, promo_rows) -> None:
        """Test periods without transaction rows report 0."""
        body = assemble_promo_response(promo_rows)

        assert [(p.period, p.pairs, p.transactions) for p in body.overall_time_series] == [
            ("2025-01-01", 150, 70),
            ("2025-01-02", 250, 0),
        ]

    def test_overall_stores_merge_transactions(self, promo_rows) -> None:
        """Test every overall store appears once with a count."""
        body = assemble_promo_response(promo_rows)

        assert [(s.toko, s.transactions) for s in body.overall_stores] == [("A", 160), ("B", 0)]

    def test_campaign_names_come_from_options(self, promo_rows) -> None:
        """Test campaign rows are labelled from the lookup when possible."""
        body = assemble_promo_response(promo_rows)

        names = {c.campaign_code: c.campaign_name for c in body.by_campaign}
        assert names == {"B1G1": "Buy 1 Get 1", "LEGACY": None}

    def test_zero_quantity_periods_have_zero_share(self, promo_rows) -> None:
        """Test a period with no units reports a 0 promo share."""
        body = assemble_promo_response(promo_rows)

        assert body.time_series[0].promo_share == pytest.approx(0.25)
        assert body.time_series[1].promo_share == 0.0

    def test_overall_kpis(self, promo_rows) -> None:
        """Test the overall comparison set uses sale-line and transaction totals."""
        body = assemble_promo_response(promo_rows)

        assert body.overall_kpis.pairs == 400
        assert body.overall_kpis.transactions == 160
        assert body.overall_kpis.atu == pytest.approx(2.5)

    def test_store_rows_carry_discount_total(self, promo_rows) -> None:
        """Test each promo store row reports its summed discount."""
        body = assemble_promo_response(promo_rows)

        store = body.stores[0].model_dump(by_alias=True)
        assert store["discountTotal"] == 450000.0
        assert store["transactions"] == 40

    def test_period_points_carry_discount_and_transactions(self, promo_rows) -> None:
        """Test promo periods report discount and receipt count, 0 when absent."""
        body = assemble_promo_response(promo_rows)

        first, second = (p.model_dump(by_alias=True) for p in body.time_series)
        assert (first["discountTotal"], first["transactions"]) == (150000.0, 14)
        assert (second["discountTotal"], second["transactions"]) == (0.0, 0)

    def test_empty_results_keep_shape(self) -> None:
        """Test an empty promo window still yields every key."""
        payload = assemble_promo_response({}).model_dump(by_alias=True)

        assert payload["spgLeaderboard"] == []
        assert payload["campaignOptions"] == []
        assert payload["overallKpis"]["revenue"] == 0.0


class TestPromoService:
    """PromoService orchestration."""

    async def test_runs_sequentially_on_one_session(self, make_executor, promo_rows) -> None:
        """Test the promo batch uses the sequential strategy."""
        executor = make_executor(promo_rows)

        body = await PromoService().build_promo(executor, parse_filters({"campaign": "B1G1"}))

        assert executor.strategies == ["sequential"]
        assert "campaign_options" in executor.batches[0]
        assert body.kpis.qty_promo == 30
        assert body.spg_leaderboard[0].spg == "Ayu"
