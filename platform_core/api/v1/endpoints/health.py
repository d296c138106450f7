"""Health check endpoint. No database access; used for liveness checks."""

from fastapi import APIRouter, Request

from platform_core.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Return ok plus the cache backend state."""
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        return HealthResponse(cache="disabled")
    return HealthResponse(cache="available" if cache.is_available() else "unavailable")
