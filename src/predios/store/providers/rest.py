"""PostgREST-backed parcel store provider."""

from __future__ import annotations

from typing import Any

import httpx

from predios.core.config import StoreConfig
from predios.geo.models import (
    Amenity,
    BBox,
    BoundaryCollection,
    Centroid,
    FeatureCollection,
    ParcelFeature,
    SuitabilityRecord,
    ZoningRecord,
)
from predios.store.client import (
    BoundaryKind,
    ParcelStoreClient,
    StoreError,
    to_boundaries,
    to_collection,
    to_feature,
)
from predios.store.http import StoreTransport

_BOUNDARY_RPC: dict[str, str] = {
    "district": "get_parroquias_geojson",
    "neighborhood": "get_barrios_geojson",
}


class RestStoreClient(ParcelStoreClient):
    """Calls the store's SQL functions through ``/rest/v1/rpc/<name>``."""

    def __init__(self, config: StoreConfig, transport: StoreTransport | None = None) -> None:
        super().__init__(config)
        self._transport = transport or StoreTransport(config)

    # -- public API ----------------------------------------------------------

    async def parcels_in_bbox(self, bbox: BBox) -> FeatureCollection:
        data = await self._transport.rpc(
            "get_predios_geojson",
            {
                "min_lng": bbox.min_lng,
                "min_lat": bbox.min_lat,
                "max_lng": bbox.max_lng,
                "max_lat": bbox.max_lat,
            },
        )
        return to_collection(data)

    async def parcels_by_code(self, code: str) -> FeatureCollection:
        data = await self._transport.rpc("search_predios_by_clave", {"clave": code})
        return to_collection(data)

    async def parcel_by_id(self, parcel_id: int) -> ParcelFeature | None:
        data = await self._transport.rpc("get_predio_geojson", {"p_id": parcel_id})
        return to_feature(data)

    async def zoning_by_parcel(self, parcel_id: int) -> ZoningRecord | None:
        data = await self._transport.rpc("get_zonificacion_predio", {"p_id": parcel_id})
        return _one(ZoningRecord, data)

    async def suitability_by_parcel(self, parcel_id: int) -> SuitabilityRecord | None:
        data = await self._transport.rpc("get_aptitud_predio", {"p_id": parcel_id})
        return _one(SuitabilityRecord, data)

    async def amenities_near_parcel(self, parcel_id: int, radius: float) -> list[Amenity]:
        data = await self._transport.rpc(
            "get_equipamiento_cercano", {"p_id": parcel_id, "distancia": radius}
        )
        try:
            return [Amenity.model_validate(item) for item in data or []]
        except ValueError as exc:
            raise StoreError(f"Malformed amenity list: {exc}") from exc

    async def centroid_of_parcel(self, parcel_id: int) -> Centroid | None:
        data = await self._transport.rpc("get_predio_centroid", {"p_id": parcel_id})
        return _one(Centroid, data)

    async def boundary_polygons(self, kind: BoundaryKind) -> BoundaryCollection:
        rpc_name = _BOUNDARY_RPC.get(kind)
        if rpc_name is None:
            raise ValueError(f"Unknown boundary kind {kind!r}")
        return to_boundaries(await self._transport.rpc(rpc_name))

    async def is_available(self) -> bool:
        try:
            resp = await self._transport.request("GET", "/rest/v1/")
            return resp.status_code < 500
        except (StoreError, httpx.HTTPError):
            return False

    async def close(self) -> None:
        await self._transport.close()


def _one(model: Any, data: Any) -> Any:
    # Set-returning functions hand back a list; scalar ones an object.
    if isinstance(data, list):
        data = data[0] if data else None
    if not data:
        return None
    try:
        return model.model_validate(data)
    except ValueError as exc:
        raise StoreError(f"Malformed {model.__name__}: {exc}") from exc
