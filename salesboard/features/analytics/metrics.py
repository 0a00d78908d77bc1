"""Derived metrics and price bucketing.

All ratios are zero-safe: a zero (or missing) denominator yields exactly 0.0,
never NaN, infinity or an exception.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

# =============================================================================
# Numeric coercion
# =============================================================================


def to_number(value: Any) -> float:
    """Coerce a driver value (Decimal, int, numeric string, None) to float.

    Non-numeric and non-finite input becomes 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def to_int(value: Any) -> int:
    """Coerce a driver value to int (truncating), 0 when not numeric."""
    return int(to_number(value))


# =============================================================================
# Ratios
# =============================================================================


def safe_ratio(numerator: Any, denominator: Any) -> float:
    """numerator / denominator, or 0.0 when the denominator is zero."""
    denominator = to_number(denominator)
    if denominator == 0:
        return 0.0
    return to_number(numerator) / denominator


def atu(pairs: Any, transactions: Any) -> float:
    """Average transaction units: pairs per transaction."""
    return safe_ratio(pairs, transactions)


def asp(revenue: Any, pairs: Any) -> float:
    """Average selling price: revenue per pair."""
    return safe_ratio(revenue, pairs)


def atv(revenue: Any, transactions: Any) -> float:
    """Average transaction value: revenue per transaction."""
    return safe_ratio(revenue, transactions)


def promo_share(qty_promo: Any, qty_all: Any) -> float:
    """Share of units sold under a promo."""
    return safe_ratio(qty_promo, qty_all)


# =============================================================================
# Price buckets
# =============================================================================


@dataclass(frozen=True)
class PriceBand:
    """Inclusive price band over per-product average price."""

    low: int
    high: float
    label: str

    def contains(self, price: int) -> bool:
        return self.low <= price <= self.high


PRICE_BANDS: tuple[PriceBand, ...] = (
    PriceBand(0, 50_000, "0-50K"),
    PriceBand(50_001, 100_000, "50-100K"),
    PriceBand(100_001, 150_000, "100-150K"),
    PriceBand(150_001, 200_000, "150-200K"),
    PriceBand(200_001, 300_000, "200-300K"),
    PriceBand(300_001, 500_000, "300-500K"),
    PriceBand(500_001, math.inf, "500K+"),
)


def average_price(revenue: Any, pairs: Any) -> int | None:
    """Per-product average price rounded half-up to whole currency units.

    Returns None when the product sold no pairs; such products are not
    bucketed at all.
    """
    pairs_count = to_int(pairs)
    if pairs_count <= 0:
        return None
    try:
        total = Decimal(str(revenue if revenue is not None else 0))
    except InvalidOperation:
        total = Decimal(0)
    return int((total / pairs_count).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def find_band(price: int) -> PriceBand | None:
    for band in PRICE_BANDS:
        if band.contains(price):
            return band
    return None


def bucket_prices(rows: Iterable[Mapping[str, Any]]) -> list[tuple[PriceBand, int]]:
    """Sum pairs per price band over per-product rows.

    Args:
        rows: One row per product code with ``pairs`` and ``revenue`` sums.

    Returns:
        (band, pairs) in band order, only for bands with pairs > 0.
    """
    totals = dict.fromkeys(PRICE_BANDS, 0)
    for row in rows:
        price = average_price(row.get("revenue"), row.get("pairs"))
        if price is None:
            continue
        # Net refunds can push revenue below zero; those land in the lowest band.
        band = find_band(max(price, 0))
        if band is not None:
            totals[band] += to_int(row.get("pairs"))
    return [(band, pairs) for band, pairs in totals.items() if pairs > 0]
