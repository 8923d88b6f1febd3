"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio

import pytest

from predios.geo.models import BBox, FeatureCollection, ParcelFeature, ParcelProperties, Viewport
from predios.store.client import StoreError
from predios.store.providers.memory import MemoryStoreClient, rectangle


def make_feature(parcel_id: int, bounds: list[float] | None = None, **props) -> ParcelFeature:
    bounds = bounds or [-79.2050, -3.9960, -79.2045, -3.9955]
    return ParcelFeature(
        geometry=rectangle(bounds),
        properties=ParcelProperties(id=parcel_id, **props),
    )


def make_viewport(zoom: int = 17, offset: float = 0.0) -> Viewport:
    return Viewport(
        min_lng=-79.21 + offset,
        min_lat=-4.00,
        max_lng=-79.20 + offset,
        max_lat=-3.99,
        zoom=zoom,
    )


class GatedStore(MemoryStoreClient):
    """Memory store whose bbox and code queries wait until the test releases them.

    Each call registers a gate; ``release(n, result)`` resolves the n-th call
    with ``result`` (a FeatureCollection or a StoreError to raise).
    """

    def __init__(self) -> None:
        super().__init__()
        self.bbox_calls: list[BBox] = []
        self.code_calls: list[str] = []
        self._gates: list[asyncio.Future] = []

    async def _wait(self) -> FeatureCollection:
        gate = asyncio.get_running_loop().create_future()
        self._gates.append(gate)
        outcome = await gate
        if isinstance(outcome, StoreError):
            raise outcome
        return outcome

    async def parcels_in_bbox(self, bbox: BBox) -> FeatureCollection:
        self.bbox_calls.append(bbox)
        return await self._wait()

    async def parcels_by_code(self, code: str) -> FeatureCollection:
        self.code_calls.append(code)
        return await self._wait()

    @property
    def waiting(self) -> int:
        return sum(1 for g in self._gates if not g.done())

    def release(self, index: int, outcome: FeatureCollection | StoreError) -> None:
        self._gates[index].set_result(outcome)


async def settle_loop(rounds: int = 5) -> None:
    """Let scheduled callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def memory_store() -> MemoryStoreClient:
    return MemoryStoreClient()


@pytest.fixture
def gated_store() -> GatedStore:
    return GatedStore()
