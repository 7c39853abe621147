from fastapi import APIRouter, Depends

from thindata.api.v1.dependencies import get_registry
from thindata.models.sources import HealthResponse
from thindata.services.registry import SourceRegistry

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def healthcheck(
    registry: SourceRegistry = Depends(get_registry),
) -> HealthResponse:
    """Lightweight readiness check."""
    return HealthResponse(status="ok", sources=len(registry))
