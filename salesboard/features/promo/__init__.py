"""Promo module: campaign performance against overall sales."""

from salesboard.features.promo.routes import router
from salesboard.features.promo.schemas import PromoResponse
from salesboard.features.promo.service import PromoService

__all__ = [
    "PromoResponse",
    "PromoService",
    "router",
]
