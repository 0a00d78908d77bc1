"""Data platform feature: read-only mappings of the point-of-sale marts.

- Facts: SaleLine, TransactionCount, PromoSale
- Lookups: SkuClassification, PromoCampaign
"""

from salesboard.features.data_platform.models import (
    PromoCampaign,
    PromoSale,
    SaleLine,
    SkuClassification,
    TransactionCount,
)

__all__ = [
    "PromoCampaign",
    "PromoSale",
    "SaleLine",
    "SkuClassification",
    "TransactionCount",
]
