"""
API Dependencies
================
Caller identity and analytics service wiring for request handlers.
"""

from functools import lru_cache
from typing import Annotated

import structlog
from fastapi import Depends, Header, HTTPException, status

from backend.config import settings
from backend.core.pricing import YamlPricingSource
from backend.database import get_session_factory
from backend.schemas.events import Caller
from backend.services.analytics import AnalyticsService
from backend.sources import (
    SqlEventStore,
    SqlHierarchySource,
    SqlPricingSource,
    SqlTranscriptionSource,
)
from backend.sources.base import PricingSource

logger = structlog.get_logger()


def _parse_int_header(name: str, value: str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as e:
        logger.warning("Malformed identity header", header=name, value=value)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name} header",
        ) from e


async def get_caller(
    x_user_id: Annotated[str, Header(description="Authenticated user ID")],
    x_user_role: Annotated[str, Header(description="Authenticated user role")],
    x_university_id: Annotated[str | None, Header(description="Caller's university ID")] = None,
) -> Caller:
    """
    Caller identity forwarded by the authenticating gateway.

    Role values are not validated here; unknown roles resolve to an
    empty module scope downstream.
    """
    user_id = _parse_int_header("X-User-Id", x_user_id)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-User-Id header",
        )
    return Caller(
        user_id=user_id,
        role=x_user_role,
        university_id=_parse_int_header("X-University-Id", x_university_id),
    )


@lru_cache
def _yaml_pricing_source() -> YamlPricingSource:
    return YamlPricingSource(settings.pricing_config_path)


def get_pricing_source() -> PricingSource:
    """Pricing rows from the database or the YAML file, per configuration."""
    if settings.pricing_source == "yaml":
        return _yaml_pricing_source()
    return SqlPricingSource(get_session_factory())


def get_analytics_service(
    pricing: Annotated[PricingSource, Depends(get_pricing_source)],
) -> AnalyticsService:
    session_factory = get_session_factory()
    return AnalyticsService(
        event_store=SqlEventStore(session_factory),
        hierarchy=SqlHierarchySource(session_factory),
        pricing=pricing,
        transcriptions=SqlTranscriptionSource(session_factory),
    )


CallerDep = Annotated[Caller, Depends(get_caller)]
AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]
