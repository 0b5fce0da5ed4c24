"""
Health Check Endpoints
======================
Liveness and readiness checks.
"""

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from backend import __version__
from backend.config import settings
from backend.database import get_session

router = APIRouter()
logger = structlog.get_logger()


class HealthResponse(BaseModel):
    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness of the read store backing the analytics."""

    status: str
    database: str
    pricing_source: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check; OK whenever the process serves requests."""
    return HealthResponse(status="ok", version=__version__)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    session: AsyncSession = Depends(get_session),
) -> ReadinessResponse:
    """
    Readiness check.

    Reports "degraded" rather than failing when the event and reference
    store is unreachable, since analytics calls degrade the same way.
    """
    try:
        await session.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.warning("Readiness check could not reach the database", error=str(e))
        db_status = "disconnected"

    return ReadinessResponse(
        status="ok" if db_status == "connected" else "degraded",
        database=db_status,
        pricing_source=settings.pricing_source,
        version=__version__,
    )
