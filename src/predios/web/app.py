"""FastAPI application for the Predios parcel explorer.

Serves parcel queries, zoning and surroundings over REST, and proxies WMS
tiles from the municipal GeoServer.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from predios import __version__
from predios.core.config import Settings
from predios.core.logging import configure_logging
from predios.core.types import HealthStatus
from predios.map.overlays import OverlayRegistry
from predios.store.client import ParcelStoreClient, create_store_client
from predios.store.health import check_store_health
from predios.web.parcels_router import router as parcels_router
from predios.web.wms_router import router as wms_router

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str = __version__
    store: HealthStatus


def create_app(
    settings: Settings | None = None,
    store_client: ParcelStoreClient | None = None,
    wms_http: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances
    with in-memory stores and mocked upstreams.

    Args:
        settings: Application settings. Defaults to Settings().
        store_client: Optional pre-built store client; built from
            ``settings.store`` otherwise.
        wms_http: Optional HTTP client for the GeoServer upstream.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings()

    configure_logging(settings.log_level)

    owns_store = store_client is None
    if store_client is None:
        store_client = create_store_client(settings.store)
    owns_http = wms_http is None
    if wms_http is None:
        wms_http = httpx.AsyncClient(timeout=httpx.Timeout(settings.wms.timeout_seconds))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Predios started (store=%s, environment=%s)",
            settings.store.provider, settings.environment,
        )
        yield
        if owns_store:
            await store_client.close()
        if owns_http:
            await wms_http.aclose()

    app = FastAPI(
        title="Predios",
        description="Parcel exploration for the Loja cadastre",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Tiles and GeoJSON are consumed by browser map clients on other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.store_client = store_client
    app.state.wms_http = wms_http
    app.state.overlays = OverlayRegistry(store_client)

    app.include_router(parcels_router)
    app.include_router(wms_router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint; reports the store probe."""
        store = await check_store_health(store_client)
        return HealthResponse(
            status="healthy" if store.healthy else "degraded",
            service="predios",
            store=store,
        )

    return app
