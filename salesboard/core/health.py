"""Liveness and readiness probes.

Readiness also reports how fresh the sale-line mart is, so a stalled ETL
shows up next to connectivity problems.
"""

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from salesboard.core.database import get_db
from salesboard.core.logging import get_logger
from salesboard.features.data_platform.models import SaleLine

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: Literal["ok", "unhealthy"]
    database: Literal["connected", "disconnected"] | None = None
    data_through: date | None = None


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health_check() -> HealthResponse:
    """Liveness probe; never touches the database."""
    return HealthResponse(status="ok")


@router.get("/health/ready", response_model=HealthResponse, response_model_exclude_none=True)
async def readiness_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Readiness probe: the sale-line mart must answer a query.

    Returns:
        ``ok`` with the latest sale date, or ``unhealthy`` when the query
        fails. Always HTTP 200 so the body is readable by the probe.
    """
    try:
        latest = await db.scalar(select(func.max(SaleLine.sale_date)))
    except SQLAlchemyError as e:
        logger.error("health.database_disconnected", error=str(e), error_type=type(e).__name__)
        return HealthResponse(status="unhealthy", database="disconnected")

    logger.debug("health.database_connected", data_through=latest)
    return HealthResponse(status="ok", database="connected", data_through=latest)
