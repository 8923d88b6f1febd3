"""Public amenities around a parcel (entorno del predio)."""

from __future__ import annotations

import asyncio
from collections import defaultdict

from pydantic import BaseModel, Field

from predios.core.types import OperationState
from predios.geo.models import Amenity, Centroid
from predios.map.overlays import OverlayCache
from predios.store.client import ParcelStoreClient

RADII_M: tuple[int, ...] = (200, 500, 1000, 1500)
DEFAULT_RADIUS_M = 500

CATEGORY_MARKER_COLORS: dict[str, str] = {
    "Educación": "#1d4ed8",
    "Salud": "#b91c1c",
    "Seguridad": "#3730a3",
    "Transporte": "#c2410c",
    "Recreación y Deporte": "#047857",
    "Aprovisionamiento": "#b45309",
    "Cultura": "#7e22ce",
    "Culto": "#be185d",
    "Administración Pública": "#374151",
    "Infraestructura": "#475569",
    "Inclusión Social": "#0f766e",
    "Servicios Funerarios": "#57534e",
}
DEFAULT_MARKER_COLOR = "#6b7280"


def marker_color(categoria: str) -> str:
    return CATEGORY_MARKER_COLORS.get(categoria, DEFAULT_MARKER_COLOR)


class AmenityGroup(BaseModel):
    categoria: str
    color: str
    amenities: list[Amenity] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.amenities)


class Surroundings(BaseModel):
    parcel_id: int
    radius: int
    amenities: list[Amenity] = Field(default_factory=list)
    centroid: Centroid | None = None

    def grouped(self) -> list[AmenityGroup]:
        """Amenities grouped by category, largest group first."""
        buckets: dict[str, list[Amenity]] = defaultdict(list)
        for amenity in self.amenities:
            buckets[amenity.categoria].append(amenity)
        groups = [
            AmenityGroup(categoria=cat, color=marker_color(cat), amenities=items)
            for cat, items in buckets.items()
        ]
        groups.sort(key=lambda g: (-g.count, g.categoria))
        return groups


class SurroundingsService:
    """Loads amenities and the parcel centroid, memoised per (parcel, radius)."""

    def __init__(self, store: ParcelStoreClient) -> None:
        self._store = store
        self._caches: dict[tuple[int, int], OverlayCache[Surroundings]] = {}
        self.state = OperationState()

    async def fetch(self, parcel_id: int, radius: int = DEFAULT_RADIUS_M) -> Surroundings | None:
        if radius not in RADII_M:
            raise ValueError(f"Radius must be one of {RADII_M}, got {radius}")
        key = (parcel_id, radius)
        cache = self._caches.get(key)
        if cache is None:
            cache = OverlayCache(f"amenities:{parcel_id}:{radius}", self._loader(parcel_id, radius))
            self._caches[key] = cache

        self.state.start()
        result = await cache.get()
        if result is None:
            self.state.fail(cache.state.error or "Could not load surroundings")
            return None
        self.state.succeed()
        return result

    def _loader(self, parcel_id: int, radius: int):
        async def load() -> Surroundings:
            amenities, centroid = await asyncio.gather(
                self._store.amenities_near_parcel(parcel_id, radius),
                self._store.centroid_of_parcel(parcel_id),
            )
            return Surroundings(
                parcel_id=parcel_id, radius=radius, amenities=amenities, centroid=centroid
            )

        return load

