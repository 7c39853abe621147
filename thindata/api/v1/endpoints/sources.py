"""
Data source endpoints.

Exposes the configured remote sources: their current snapshot, and
operations that reload them or fetch further pages.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from thindata.api.v1.dependencies import get_registry
from thindata.models.sources import SourceSnapshot
from thindata.services.data_source import DataSource
from thindata.services.errors import NoMoreDataError, SourceNotFoundError
from thindata.services.registry import SourceRegistry

router = APIRouter()


def _lookup(registry: SourceRegistry, name: str) -> DataSource:
    try:
        return registry.get(name)
    except SourceNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Source '{name}' not found",
        ) from exc


@router.get("", response_model=list[SourceSnapshot], summary="List data sources")
async def list_sources(
    registry: SourceRegistry = Depends(get_registry),
) -> list[SourceSnapshot]:
    return [SourceSnapshot.from_source(source) for source in registry]


@router.get("/{name}", response_model=SourceSnapshot, summary="Get a data source")
async def get_source(
    name: str,
    registry: SourceRegistry = Depends(get_registry),
) -> SourceSnapshot:
    return SourceSnapshot.from_source(_lookup(registry, name))


@router.post(
    "/{name}/refresh",
    response_model=SourceSnapshot,
    summary="Reload a data source",
)
async def refresh_source(
    name: str,
    registry: SourceRegistry = Depends(get_registry),
) -> SourceSnapshot:
    """Fetch the source again, falling back to its cache if the fetch fails."""
    source = _lookup(registry, name)
    await source.refresh()
    return SourceSnapshot.from_source(source)


@router.post(
    "/{name}/fetch-more",
    response_model=SourceSnapshot,
    summary="Fetch the next page of a data source",
)
async def fetch_more(
    name: str,
    registry: SourceRegistry = Depends(get_registry),
) -> SourceSnapshot:
    source = _lookup(registry, name)
    try:
        await source.fetch_more()
    except NoMoreDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    return SourceSnapshot.from_source(source)
