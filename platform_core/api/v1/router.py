"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from platform_core.api.v1.dependencies.
"""

from fastapi import APIRouter

from platform_core.api.v1.endpoints import entities, health

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(entities.router, prefix="/entities/{entity}", tags=["entities"])
