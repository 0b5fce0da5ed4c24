"""
API Router
==========
Main API router combining all endpoint modules.
"""

from fastapi import APIRouter

from backend.api.endpoints import analytics, health

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
