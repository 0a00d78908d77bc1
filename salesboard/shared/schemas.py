"""Base models shared by the feature slices."""

import math

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys.

    Fields are declared in snake_case; the dashboard client reads
    ``timeSeries``, ``qtyAll`` and friends.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginationParams(BaseModel):
    """Detail-table page after clamping.

    Out-of-range input is coerced instead of rejected: page is floored at 1
    and page_size is clamped to ``[1, max_page_size]``.
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(1, ge=1)
    page_size: int = Field(50, ge=1)

    @classmethod
    def clamped(cls, page: int, page_size: int, max_page_size: int) -> "PaginationParams":
        return cls(page=max(1, page), page_size=min(max_page_size, max(1, page_size)))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

    def page_count(self, total: int) -> int:
        """ceil(total / page_size); 0 when nothing matched."""
        return math.ceil(total / self.page_size) if total > 0 else 0
