"""Test fixtures for promo module."""

from datetime import date
from decimal import Decimal

import pytest


@pytest.fixture
def promo_rows() -> dict[str, list[dict]]:
    """Canned results for one promo view."""
    return {
        "promo_kpis": [
            {
                "qty_promo": 30,
                "qty_all": 120,
                "revenue": Decimal("9000000"),
                "discount_total": Decimal("450000"),
                "transactions": 40,
            }
        ],
        "promo_time_series": [
            {
                "period": date(2025, 1, 1),
                "qty_promo": 10,
                "qty_all": 40,
                "revenue": Decimal("3000000"),
                "discount_total": Decimal("150000"),
                "transactions": 14,
            },
            {"period": date(2025, 1, 2), "qty_promo": 20, "qty_all": 0, "revenue": Decimal("6000000")},
        ],
        "by_campaign": [
            {
                "campaign_code": "B1G1",
                "qty_promo": 30,
                "qty_all": 120,
                "revenue": Decimal("9000000"),
                "discount_total": Decimal("450000"),
                "transactions": 40,
            },
            {
                "campaign_code": "LEGACY",
                "qty_promo": 0,
                "qty_all": 0,
                "revenue": Decimal("0"),
                "discount_total": Decimal("0"),
                "transactions": 0,
            },
        ],
        "promo_stores": [
            {
                "toko": "A",
                "branch": "Bali",
                "qty_promo": 30,
                "qty_all": 120,
                "revenue": Decimal("9000000"),
                "discount_total": Decimal("450000"),
                "transactions": 40,
            }
        ],
        "spg_leaderboard": [
            {"spg": "Ayu", "qty_promo": 18, "qty_all": 70, "revenue": Decimal("5000000"), "transactions": 22}
        ],
        "overall_sales": [{"pairs": 400, "revenue": Decimal("36000000")}],
        "overall_transactions": [{"transactions": 160}],
        "overall_time_series": [
            {"period": date(2025, 1, 1), "pairs": 150, "revenue": Decimal("13000000")},
            {"period": date(2025, 1, 2), "pairs": 250, "revenue": Decimal("23000000")},
        ],
        "overall_time_series_transactions": [{"period": date(2025, 1, 1), "transactions": 70}],
        "overall_stores": [
            {"toko": "A", "branch": "Bali", "pairs": 300, "revenue": Decimal("27000000")},
            {"toko": "B", "branch": "Bali", "pairs": 100, "revenue": Decimal("9000000")},
        ],
        "overall_store_transactions": [{"toko": "A", "transactions": 160}],
        "campaign_options": [{"code": "B1G1", "name": "Buy 1 Get 1"}],
    }
