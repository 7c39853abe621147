from fastapi import APIRouter

from thindata.api.v1.endpoints.health import router as health_router
from thindata.api.v1.endpoints.sources import router as sources_router

router = APIRouter()
router.include_router(health_router, tags=["meta"])
router.include_router(sources_router, prefix="/sources", tags=["sources"])
