"""Tests for the surroundings (nearby amenities) service."""

from __future__ import annotations

import pytest

from predios.analysis.surroundings import (
    DEFAULT_MARKER_COLOR,
    Surroundings,
    SurroundingsService,
    marker_color,
)
from predios.geo.models import Amenity
from predios.store.client import StoreError


def _amenity(amenity_id: int, categoria: str) -> Amenity:
    return Amenity(id=amenity_id, categoria=categoria, lat=0.0, lng=0.0)


class TestGrouping:
    def test_largest_group_first(self):
        result = Surroundings(
            parcel_id=1,
            radius=500,
            amenities=[
                _amenity(1, "Salud"),
                _amenity(2, "Educación"),
                _amenity(3, "Educación"),
                _amenity(4, "Cultura"),
            ],
        )
        groups = result.grouped()
        assert [(g.categoria, g.count) for g in groups] == [
            ("Educación", 2),
            ("Cultura", 1),
            ("Salud", 1),
        ]

    def test_marker_colors(self):
        assert marker_color("Salud") != DEFAULT_MARKER_COLOR
        assert marker_color("Desconocido") == DEFAULT_MARKER_COLOR


class TestSurroundingsService:
    async def test_fetch_default_radius(self, memory_store):
        service = SurroundingsService(memory_store)
        result = await service.fetch(1001)
        assert result.radius == 500
        assert [a.id for a in result.amenities] == [3, 1, 4]
        assert result.centroid is not None

    async def test_fetch_is_memoised_per_radius(self, memory_store, monkeypatch):
        calls: list[float] = []
        original = memory_store.amenities_near_parcel

        async def counting(parcel_id, radius):
            calls.append(radius)
            return await original(parcel_id, radius)

        monkeypatch.setattr(memory_store, "amenities_near_parcel", counting)
        service = SurroundingsService(memory_store)
        await service.fetch(1001, 200)
        await service.fetch(1001, 200)
        await service.fetch(1001, 1500)
        assert calls == [200, 1500]

    async def test_invalid_radius(self, memory_store):
        with pytest.raises(ValueError, match="Radius must be one of"):
            await SurroundingsService(memory_store).fetch(1001, 750)

    async def test_failure_is_reported_and_retried(self, memory_store, monkeypatch):
        original = memory_store.centroid_of_parcel
        failures = [StoreError("centroid unavailable")]

        async def flaky(parcel_id):
            if failures:
                raise failures.pop()
            return await original(parcel_id)

        monkeypatch.setattr(memory_store, "centroid_of_parcel", flaky)
        service = SurroundingsService(memory_store)
        assert await service.fetch(1001) is None
        assert service.state.error == "centroid unavailable"

        result = await service.fetch(1001)
        assert result is not None
        assert service.state.error is None
