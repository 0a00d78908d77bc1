"""Test fixtures for analytics module."""

from datetime import date
from decimal import Decimal

import pytest


@pytest.fixture
def two_day_rows() -> dict[str, list[dict]]:
    """Canned results for two daily sale lines of store A."""
    return {
        "kpi_sales": [{"pairs": 15, "revenue": Decimal("1400000.00")}],
        "kpi_transactions": [{"transactions": 6}],
        "time_series": [
            {"period": date(2025, 1, 1), "pairs": 10, "revenue": Decimal("1000000.00")},
            {"period": date(2025, 1, 2), "pairs": 5, "revenue": Decimal("400000.00")},
        ],
        "store_sales": [
            {"toko": "A", "branch": "Bali", "pairs": 15, "revenue": Decimal("1400000.00")}
        ],
        "store_transactions": [{"toko": "A", "transactions": 6}],
        "by_branch": [{"branch": "Bali", "pairs": 15, "revenue": Decimal("1400000.00")}],
        "price_points": [
            {"kode": "K1", "pairs": 10, "revenue": Decimal("1000000.00")},
            {"kode": "K2", "pairs": 5, "revenue": Decimal("400000.00")},
        ],
        "rank_by_article": [
            {
                "article": None,
                "kode_besar": "KB1",
                "kode_mix": "MX1",
                "pairs": 15,
                "revenue": Decimal("1400000.00"),
            }
        ],
        "last_update": [{"last_date": date(2025, 1, 2)}],
    }


@pytest.fixture
def detail_rows() -> dict[str, list[dict]]:
    """Canned results for one detail page and its count."""
    return {
        "detail": [
            {
                "toko": "A",
                "kode": "K1-40",
                "kode_besar": "K1",
                "article": "Slide Classic",
                "gender": "Men",
                "series": "Classic",
                "color": "Black",
                "tipe": "jepit",
                "tier": "1",
                "pairs": 10,
                "revenue": Decimal("1000000.00"),
                "avg_price": Decimal("100000.00"),
            }
        ],
        "detail_count": [{"total": 120, "pairs": 900, "revenue": Decimal("81000000.00")}],
    }
