"""Analytics module for the dashboard, detail and filter-options views.

This module plans filtered aggregate queries over the sale-line and
transaction facts, runs them concurrently and shapes the results into
fixed-shape responses.
"""

from salesboard.features.analytics.routes import router
from salesboard.features.analytics.schemas import (
    DashboardResponse,
    DetailResponse,
    FilterOptionsResponse,
)
from salesboard.features.analytics.service import AnalyticsService

__all__ = [
    "AnalyticsService",
    "DashboardResponse",
    "DetailResponse",
    "FilterOptionsResponse",
    "router",
]
