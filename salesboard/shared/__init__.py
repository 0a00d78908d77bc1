"""Models shared across feature slices."""

from salesboard.shared.schemas import CamelModel, PaginationParams

__all__ = [
    "CamelModel",
    "PaginationParams",
]
