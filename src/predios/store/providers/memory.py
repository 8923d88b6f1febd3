"""In-memory parcel store with YAML fixture parcels for development/testing."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any

import yaml

from predios.core.config import StoreConfig
from predios.geo.models import (
    Amenity,
    BBox,
    BoundaryCollection,
    Centroid,
    FeatureCollection,
    ParcelFeature,
    ParcelProperties,
    SuitabilityRecord,
    ZoningRecord,
)
from predios.store.client import BoundaryKind, ParcelStoreClient

_DEFAULT_FIXTURES_PATH = Path(__file__).resolve().parents[1] / "fixtures" / "loja.yml"

_EARTH_RADIUS_M = 6_371_000.0


def rectangle(bounds: list[float]) -> dict[str, Any]:
    """Build a closed GeoJSON Polygon from ``[min_lng, min_lat, max_lng, max_lat]``."""
    min_lng, min_lat, max_lng, max_lat = bounds
    ring = [
        [min_lng, min_lat],
        [max_lng, min_lat],
        [max_lng, max_lat],
        [min_lng, max_lat],
        [min_lng, min_lat],
    ]
    return {"type": "Polygon", "coordinates": [ring]}


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * _EARTH_RADIUS_M * math.asin(math.sqrt(a))


class MemoryStoreClient(ParcelStoreClient):
    """Fixture-backed store. Answers every RPC from dictionaries in memory."""

    def __init__(self, config: StoreConfig | None = None) -> None:
        super().__init__(config or StoreConfig())
        self._parcels: dict[int, ParcelFeature] = {}
        self._zoning: dict[int, ZoningRecord] = {}
        self._suitability: dict[int, SuitabilityRecord] = {}
        self._amenities: list[Amenity] = []
        self._boundaries: dict[str, list[dict[str, Any]]] = {}
        path = self.config.fixtures_path
        self._load_fixtures(Path(path) if path else _DEFAULT_FIXTURES_PATH)

    def _load_fixtures(self, path: Path) -> None:
        if not path.exists():
            return
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}

        for item in data.get("parcels", []):
            item = dict(item)
            bounds = item.pop("bounds")
            self.add_parcel(ParcelFeature(
                geometry=rectangle(bounds),
                properties=ParcelProperties(**item),
            ))
        for parcel_id, record in (data.get("zoning") or {}).items():
            self._zoning[int(parcel_id)] = ZoningRecord(**record)
        for parcel_id, record in (data.get("suitability") or {}).items():
            self._suitability[int(parcel_id)] = SuitabilityRecord(**record)
        for item in data.get("amenities", []):
            self._amenities.append(Amenity(**item))
        for kind, entries in (data.get("boundaries") or {}).items():
            self._boundaries[kind] = [
                {
                    "type": "Feature",
                    "geometry": rectangle(entry["bounds"]),
                    "properties": {"nombre": entry["name"]},
                }
                for entry in entries
            ]

    def add_parcel(self, feature: ParcelFeature) -> None:
        self._parcels[feature.id] = feature

    @property
    def parcel_count(self) -> int:
        return len(self._parcels)

    # -- ParcelStoreClient ---------------------------------------------------

    async def parcels_in_bbox(self, bbox: BBox) -> FeatureCollection:
        hits = [
            f for f in self._parcels.values()
            if (b := f.bounds()) is not None and bbox.intersects(b)
        ]
        return FeatureCollection(features=tuple(hits))

    async def parcels_by_code(self, code: str) -> FeatureCollection:
        needle = code.strip().lower()
        if not needle:
            return FeatureCollection.empty()
        hits = [
            f for f in self._parcels.values()
            if f.properties.clave_cata and needle in f.properties.clave_cata.lower()
        ]
        return FeatureCollection(features=tuple(hits))

    async def parcel_by_id(self, parcel_id: int) -> ParcelFeature | None:
        return self._parcels.get(parcel_id)

    async def zoning_by_parcel(self, parcel_id: int) -> ZoningRecord | None:
        return self._zoning.get(parcel_id)

    async def suitability_by_parcel(self, parcel_id: int) -> SuitabilityRecord | None:
        return self._suitability.get(parcel_id)

    async def amenities_near_parcel(self, parcel_id: int, radius: float) -> list[Amenity]:
        centroid = await self.centroid_of_parcel(parcel_id)
        if centroid is None:
            return []
        found: list[Amenity] = []
        for amenity in self._amenities:
            distance = haversine_m(centroid.lat, centroid.lng, amenity.lat, amenity.lng)
            if distance <= radius:
                found.append(amenity.model_copy(update={"distancia": round(distance, 1)}))
        found.sort(key=lambda a: a.distancia)
        return found

    async def centroid_of_parcel(self, parcel_id: int) -> Centroid | None:
        feature = self._parcels.get(parcel_id)
        bounds = feature.bounds() if feature else None
        if bounds is None:
            return None
        lat, lng = bounds.center
        return Centroid(lat=lat, lng=lng)

    async def boundary_polygons(self, kind: BoundaryKind) -> BoundaryCollection:
        if kind not in ("district", "neighborhood"):
            raise ValueError(f"Unknown boundary kind {kind!r}")
        return BoundaryCollection(features=list(self._boundaries.get(kind, [])))

    async def is_available(self) -> bool:
        return True
