from contextlib import asynccontextmanager
import logging

from uuid import uuid4

from fastapi import FastAPI, Request

from thindata.api.metrics import router as metrics_router
from thindata.api.v1.routes import router as api_router
from thindata.core.config import Settings, get_settings
from thindata.core.telemetry import (
    configure_opentelemetry,
    instrument_fastapi,
    instrument_httpx,
)
from thindata.services.data_store import create_data_store
from thindata.services.http_fetcher import create_http_client
from thindata.services.registry import build_registry

logger = logging.getLogger(__name__)
REQUEST_ID_HEADER = "X-Request-Id"


def _install_request_id_middleware(app: FastAPI) -> None:
    """Ensure each response includes a stable X-Request-Id header."""

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER, str(uuid4()))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the source registry and release its HTTP client on shutdown."""
    settings: Settings = app.state.settings

    configure_opentelemetry(settings)
    instrument_httpx(enabled=settings.otel_enabled)

    client = create_http_client(settings.http_timeout_seconds)
    store = create_data_store(settings)
    app.state.registry = build_registry(settings, store, client)
    logger.info("Serving %d data sources", len(app.state.registry))

    try:
        yield
    finally:
        await client.aclose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory for FastAPI."""
    settings = settings or get_settings()
    app = FastAPI(
        title="thindata API",
        description="Cached, observable access to remote JSON data sources.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    instrument_fastapi(app, enabled=settings.otel_enabled)
    _install_request_id_middleware(app)

    app.include_router(metrics_router)
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()
