"""Abstract remote parcel store interface and factory function."""

from __future__ import annotations

import abc
from typing import Any, Literal

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

BoundaryKind = Literal["district", "neighborhood"]


class StoreError(Exception):
    """A remote store call failed (transport, HTTP status, timeout or payload)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ParcelStoreClient(abc.ABC):
    """Abstract base class for parcel store providers.

    Every method is a suspension point: callers never block the event loop
    while a query is in flight.
    """

    def __init__(self, config: StoreConfig) -> None:
        self.config = config

    @abc.abstractmethod
    async def parcels_in_bbox(self, bbox: BBox) -> FeatureCollection:
        """Return parcel polygons intersecting the bounding box."""

    @abc.abstractmethod
    async def parcels_by_code(self, code: str) -> FeatureCollection:
        """Return zero or more parcels matching a cadastral code."""

    @abc.abstractmethod
    async def parcel_by_id(self, parcel_id: int) -> ParcelFeature | None:
        """Return a single parcel or None."""

    @abc.abstractmethod
    async def zoning_by_parcel(self, parcel_id: int) -> ZoningRecord | None:
        """Return the zoning record that applies to a parcel."""

    @abc.abstractmethod
    async def suitability_by_parcel(self, parcel_id: int) -> SuitabilityRecord | None:
        """Return the physical-constructive aptitude of a parcel."""

    @abc.abstractmethod
    async def amenities_near_parcel(self, parcel_id: int, radius: float) -> list[Amenity]:
        """Return public facilities within ``radius`` metres of a parcel."""

    @abc.abstractmethod
    async def centroid_of_parcel(self, parcel_id: int) -> Centroid | None:
        """Return the centroid of a parcel."""

    @abc.abstractmethod
    async def boundary_polygons(self, kind: BoundaryKind) -> BoundaryCollection:
        """Return administrative boundary polygons of the given kind."""

    @abc.abstractmethod
    async def is_available(self) -> bool:
        """Return True if the store is reachable."""

    async def close(self) -> None:
        """Clean up resources. Override if the provider holds connections."""


def to_collection(data: Any) -> FeatureCollection:
    """Normalize an RPC payload into a FeatureCollection.

    Stores return ``null`` features for empty results; that is an empty
    collection, not an error.
    """
    if not data:
        return FeatureCollection.empty()
    if not isinstance(data, dict):
        raise StoreError(f"Expected a FeatureCollection object, got {type(data).__name__}")
    features = data.get("features") or []
    try:
        return FeatureCollection(features=tuple(features))
    except ValueError as exc:
        raise StoreError(f"Malformed FeatureCollection: {exc}") from exc


def to_feature(data: Any) -> ParcelFeature | None:
    if not data:
        return None
    try:
        return ParcelFeature.model_validate(data)
    except ValueError as exc:
        raise StoreError(f"Malformed Feature: {exc}") from exc


def to_boundaries(data: Any) -> BoundaryCollection:
    """Normalize a boundary RPC payload.

    Accepts a FeatureCollection object, a list of Features, or a one-row
    list wrapping a FeatureCollection (set-returning functions).
    """
    if not data:
        return BoundaryCollection()
    if isinstance(data, list):
        if len(data) == 1 and isinstance(data[0], dict) and "features" in data[0]:
            data = data[0]
        else:
            data = {"features": data}
    if not isinstance(data, dict):
        raise StoreError(f"Expected a FeatureCollection object, got {type(data).__name__}")
    try:
        return BoundaryCollection(features=data.get("features") or [])
    except ValueError as exc:
        raise StoreError(f"Malformed boundary collection: {exc}") from exc


def create_store_client(config: StoreConfig) -> ParcelStoreClient:
    """Factory: select and instantiate a store provider based on config.provider."""

    from predios.store.providers import PROVIDER_REGISTRY

    provider = config.provider.lower()
    if provider not in PROVIDER_REGISTRY:
        available = ", ".join(sorted(PROVIDER_REGISTRY))
        raise ValueError(
            f"Unknown store provider {config.provider!r}. "
            f"Available: {available}"
        )

    cls = PROVIDER_REGISTRY[provider]
    return cls(config)
