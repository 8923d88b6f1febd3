"""FastAPI router for parcel queries, zoning and surroundings."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from predios.analysis.buildable import compute_buildable, technical_table
from predios.analysis.surroundings import DEFAULT_RADIUS_M, RADII_M, Surroundings
from predios.geo.models import FeatureCollection, ParcelFeature, Viewport
from predios.store.client import ParcelStoreClient, StoreError

logger = logging.getLogger(__name__)

router = APIRouter()


def _store(request: Request) -> ParcelStoreClient:
    return request.app.state.store_client


def _bad_gateway(exc: StoreError) -> HTTPException:
    logger.warning("Store call failed: %s", exc.message)
    return HTTPException(status_code=502, detail=exc.message)


async def _require_parcel(store: ParcelStoreClient, parcel_id: int) -> ParcelFeature:
    try:
        feature = await store.parcel_by_id(parcel_id)
    except StoreError as exc:
        raise _bad_gateway(exc) from exc
    if feature is None:
        raise HTTPException(status_code=404, detail=f"Predio {parcel_id} not found")
    return feature


@router.get("/api/predios")
async def parcels_in_view(
    request: Request,
    min_lng: float,
    min_lat: float,
    max_lng: float,
    max_lat: float,
    zoom: int,
) -> dict[str, Any]:
    """Parcel polygons for a viewport; empty below the polygon zoom threshold."""
    viewport = Viewport(
        min_lng=min_lng, min_lat=min_lat, max_lng=max_lng, max_lat=max_lat, zoom=zoom
    )
    if not viewport.bbox.is_valid():
        raise HTTPException(status_code=422, detail="Invalid bounding box")

    min_zoom = request.app.state.settings.map.min_zoom_polygons
    if not viewport.allows_polygons(min_zoom):
        return FeatureCollection.empty().model_dump()
    try:
        collection = await _store(request).parcels_in_bbox(viewport.bbox)
    except StoreError as exc:
        raise _bad_gateway(exc) from exc
    return collection.model_dump()


@router.get("/api/predios/search")
async def search_parcels(request: Request, clave: str = "") -> dict[str, Any]:
    """Parcels whose cadastral code matches ``clave``."""
    code = clave.strip()
    if not code:
        return FeatureCollection.empty().model_dump()
    try:
        collection = await _store(request).parcels_by_code(code)
    except StoreError as exc:
        raise _bad_gateway(exc) from exc
    return collection.model_dump()


@router.get("/api/predios/{parcel_id}")
async def get_parcel(parcel_id: int, request: Request) -> dict[str, Any]:
    feature = await _require_parcel(_store(request), parcel_id)
    return feature.model_dump()


@router.get("/api/predios/{parcel_id}/zonificacion")
async def get_zoning(parcel_id: int, request: Request) -> dict[str, Any]:
    """Zoning and aptitude; either may be null outside classified areas."""
    store = _store(request)
    try:
        zoning = await store.zoning_by_parcel(parcel_id)
        aptitud = await store.suitability_by_parcel(parcel_id)
    except StoreError as exc:
        raise _bad_gateway(exc) from exc
    return {
        "predio_id": parcel_id,
        "zonificacion": zoning.model_dump() if zoning else None,
        "aptitud": aptitud.model_dump() if aptitud else None,
    }


@router.get("/api/predios/{parcel_id}/edificabilidad")
async def get_buildable(
    parcel_id: int,
    request: Request,
    area: float | None = Query(default=None, ge=0),
) -> dict[str, Any]:
    """Buildable estimate; ``area`` defaults to the parcel's graphic area."""
    store = _store(request)
    if area is None:
        feature = await _require_parcel(store, parcel_id)
        area = feature.properties.area_grafi or 0.0
    try:
        zoning = await store.zoning_by_parcel(parcel_id)
    except StoreError as exc:
        raise _bad_gateway(exc) from exc
    if zoning is None:
        raise HTTPException(
            status_code=404, detail=f"No zoning applies to predio {parcel_id}"
        )
    estimate = compute_buildable(area, zoning)
    return {
        "predio_id": parcel_id,
        "estimate": estimate.model_dump(),
        "table": [row.model_dump() for row in technical_table(area, zoning)],
    }


@router.get("/api/predios/{parcel_id}/entorno")
async def get_surroundings(
    parcel_id: int,
    request: Request,
    distancia: int = DEFAULT_RADIUS_M,
) -> dict[str, Any]:
    """Public amenities within ``distancia`` metres, grouped by category."""
    if distancia not in RADII_M:
        raise HTTPException(
            status_code=422, detail=f"distancia must be one of {list(RADII_M)}"
        )
    store = _store(request)
    try:
        amenities = await store.amenities_near_parcel(parcel_id, distancia)
        centroid = await store.centroid_of_parcel(parcel_id)
    except StoreError as exc:
        raise _bad_gateway(exc) from exc
    result = Surroundings(
        parcel_id=parcel_id, radius=distancia, amenities=amenities, centroid=centroid
    )
    return {
        **result.model_dump(),
        "groups": [
            {"categoria": g.categoria, "color": g.color, "count": g.count}
            for g in result.grouped()
        ],
    }


@router.get("/api/limites/{kind}")
async def get_boundaries(kind: str, request: Request) -> dict[str, Any]:
    """District or neighborhood boundary polygons, fetched once per app."""
    overlays = request.app.state.overlays
    try:
        cache = overlays.get(kind)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown boundary layer {kind!r}") from exc
    data = await cache.get()
    if data is None:
        raise HTTPException(status_code=502, detail=cache.state.error or "Store unavailable")
    return data.model_dump()
