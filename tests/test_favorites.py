"""Tests for favorites: metadata normalisation, stores, photos and the adapter."""

from __future__ import annotations

import asyncio
import json
from datetime import date

import pytest
from pydantic import ValidationError

from predios.core.config import StorageConfig, StoreConfig
from predios.favorites import (
    ESTADO_OPTIONS,
    FavoritesAdapter,
    FavoritoEstado,
    FavoritoMetadata,
)
from predios.favorites.models import PredioSummary
from predios.favorites.photos import MemoryPhotoStore, RestPhotoStore, photo_path
from predios.favorites.store import (
    FavoritesRepository,
    MemoryFavoritesStore,
    RestFavoritesStore,
)
from predios.store.client import StoreError
from predios.store.http import StoreTransport

BASE = "http://store.test"
USER = "user-123"


@pytest.fixture
def repo() -> MemoryFavoritesStore:
    return MemoryFavoritesStore(
        summaries={1001: PredioSummary(clave_cata="1101-01-001-001-001", barrio="Centro")}
    )


@pytest.fixture
def photos() -> MemoryPhotoStore:
    return MemoryPhotoStore()


@pytest.fixture
def adapter(repo, photos) -> FavoritesAdapter:
    return FavoritesAdapter(repo, USER, photos)


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

class TestFavoritoMetadata:
    def test_defaults(self):
        meta = FavoritoMetadata()
        assert meta.estado == FavoritoEstado.POR_VISITAR
        assert meta.servicios == []
        assert meta.precio is None

    def test_blank_strings_become_none(self):
        meta = FavoritoMetadata(
            precio="", telefono="  ", contacto="", email_contacto="", notas=" "
        )
        assert meta.precio is None
        assert meta.telefono is None
        assert meta.contacto is None
        assert meta.email_contacto is None
        assert meta.notas is None

    def test_text_is_trimmed(self):
        assert FavoritoMetadata(contacto="  Sra. Jaramillo ").contacto == "Sra. Jaramillo"

    def test_numeric_strings_are_parsed(self):
        meta = FavoritoMetadata(precio="45000.50", calificacion="4", ultima_visita="2026-03-01")
        assert meta.precio == 45000.50
        assert meta.calificacion == 4
        assert meta.ultima_visita == date(2026, 3, 1)

    def test_calificacion_range(self):
        with pytest.raises(ValidationError):
            FavoritoMetadata(calificacion=6)

    def test_unknown_estado_rejected(self):
        with pytest.raises(ValidationError):
            FavoritoMetadata(estado="vendido")

    def test_estado_options(self):
        assert ESTADO_OPTIONS[0] == "por_visitar"
        assert "descartado" in ESTADO_OPTIONS

    def test_checklists_deduplicated(self):
        meta = FavoritoMetadata(servicios=["Agua potable", "Agua potable", "Internet"])
        assert meta.servicios == ["Agua potable", "Internet"]

    def test_toggle_item(self):
        meta = FavoritoMetadata(servicios=["Internet"])
        added = meta.toggle_item("servicios", "Gas")
        removed = added.toggle_item("servicios", "Internet")
        assert added.servicios == ["Internet", "Gas"]
        assert removed.servicios == ["Gas"]
        assert meta.servicios == ["Internet"]


# ---------------------------------------------------------------------------
# Memory store
# ---------------------------------------------------------------------------

class TestMemoryFavoritesStore:
    def test_satisfies_protocol(self, repo):
        assert isinstance(repo, FavoritesRepository)

    async def test_duplicate_insert_conflicts(self, repo):
        await repo.insert(USER, 1001, FavoritoMetadata())
        with pytest.raises(StoreError) as excinfo:
            await repo.insert(USER, 1001, FavoritoMetadata())
        assert excinfo.value.status_code == 409

    async def test_rows_are_per_user(self, repo):
        await repo.insert(USER, 1001, FavoritoMetadata())
        await repo.insert("other", 1002, FavoritoMetadata())
        rows = await repo.list_for_user(USER)
        assert [r.predio_id for r in rows] == [1001]
        assert rows[0].predio.barrio == "Centro"

    async def test_newest_first(self, repo):
        await repo.insert(USER, 1, FavoritoMetadata())
        await asyncio.sleep(0.001)
        await repo.insert(USER, 2, FavoritoMetadata())
        rows = await repo.list_for_user(USER)
        assert [r.predio_id for r in rows] == [2, 1]

    async def test_update_missing_row(self, repo):
        with pytest.raises(StoreError) as excinfo:
            await repo.update_metadata(USER, 5, FavoritoMetadata())
        assert excinfo.value.status_code == 404


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------

class TestFavoritesAdapter:
    async def test_add_updates_membership_and_list(self, adapter):
        assert await adapter.add(1001) is True
        assert adapter.is_favorito(1001)
        assert [f.predio_id for f in adapter.favoritos] == [1001]
        assert adapter.favoritos[0].label == "1101-01-001-001-001"

    async def test_remove(self, adapter):
        await adapter.add(1001)
        assert await adapter.remove(1001) is True
        assert not adapter.is_favorito(1001)
        assert adapter.favoritos == []

    async def test_toggle_twice_restores_membership(self, adapter):
        assert await adapter.toggle(2001) is True
        assert await adapter.toggle(2001) is False
        assert not adapter.is_favorito(2001)

    async def test_update_is_visible_after_refetch(self, adapter):
        await adapter.add(1001)
        meta = FavoritoMetadata(precio=52000, estado=FavoritoEstado.CONTACTADO)
        assert await adapter.update(1001, meta) is True
        entry = adapter.get(1001)
        assert entry.metadata.precio == 52000
        assert entry.metadata.estado == "contactado"

    async def test_update_round_trip_normalises_blanks(self, adapter):
        await adapter.add(2001)
        submitted = {
            "precio": "",
            "telefono": "0991234567",
            "contacto": "  ",
            "email_contacto": "",
            "notas": "Visitar el sábado",
            "servicios": ["Agua potable"],
            "estado": "negociando",
            "calificacion": 4,
        }
        await adapter.update(2001, FavoritoMetadata(**submitted))
        meta = adapter.get(2001).metadata
        assert meta.precio is None
        assert meta.telefono == "0991234567"
        assert meta.contacto is None
        assert meta.email_contacto is None
        assert meta.notas == "Visitar el sábado"
        assert meta.servicios == ["Agua potable"]
        assert meta.estado == FavoritoEstado.NEGOCIANDO
        assert meta.calificacion == 4

    async def test_without_user_everything_is_noop(self, repo):
        adapter = FavoritesAdapter(repo, None)
        assert await adapter.fetch() == []
        assert await adapter.add(1001) is False
        assert await adapter.toggle(1001) is False
        assert repo.count == 0

    async def test_failed_add_keeps_membership(self, adapter, repo):
        await repo.insert(USER, 1001, FavoritoMetadata())
        assert await adapter.add(1001) is False
        assert adapter.state.error is not None
        assert not adapter.is_favorito(1001)

    async def test_membership_is_optimistic_before_refetch(self, repo):
        gate = asyncio.Event()

        class SlowListRepo(MemoryFavoritesStore):
            async def list_for_user(self, user_id):
                await gate.wait()
                return await super().list_for_user(user_id)

        adapter = FavoritesAdapter(SlowListRepo(), USER)
        task = asyncio.create_task(adapter.add(1001))
        for _ in range(5):
            await asyncio.sleep(0)
        # Inserted and marked, list not yet refetched.
        assert adapter.is_favorito(1001)
        assert adapter.favoritos == []

        gate.set()
        assert await task is True
        assert [f.predio_id for f in adapter.favoritos] == [1001]

    async def test_fetch_failure_keeps_previous_list(self, adapter, repo, monkeypatch):
        await adapter.add(1001)

        async def broken(user_id):
            raise StoreError("offline")

        monkeypatch.setattr(repo, "list_for_user", broken)
        rows = await adapter.fetch()
        assert [r.predio_id for r in rows] == [1001]
        assert adapter.state.error == "offline"


class TestFavoritePhotos:
    async def test_add_photo_appends_url(self, adapter, photos):
        await adapter.add(1001)
        url = await adapter.add_photo(1001, "fachada.PNG", b"\x89PNG")
        assert url is not None
        assert url.endswith(".png")
        assert adapter.get(1001).metadata.fotos == [url]
        assert photos.path_from_url(url) in photos

    async def test_add_photo_requires_favorite(self, adapter):
        assert await adapter.add_photo(1001, "a.jpg", b"x") is None

    async def test_remove_photo(self, adapter, photos):
        await adapter.add(1001)
        url = await adapter.add_photo(1001, "a.jpg", b"x")
        assert await adapter.remove_photo(1001, url) is True
        assert adapter.get(1001).metadata.fotos == []
        assert photos.path_from_url(url) not in photos

    async def test_remove_photo_keeps_blob_when_update_fails(self, adapter, repo, photos, monkeypatch):
        await adapter.add(1001)
        url = await adapter.add_photo(1001, "a.jpg", b"x")

        async def broken(user_id, predio_id, metadata):
            raise StoreError("write rejected")

        monkeypatch.setattr(repo, "update_metadata", broken)
        assert await adapter.remove_photo(1001, url) is False
        assert adapter.get(1001).metadata.fotos == [url]
        assert photos.path_from_url(url) in photos
        assert adapter.state.error == "write rejected"

    async def test_removing_favorite_deletes_photos(self, adapter, photos):
        await adapter.add(1001)
        url = await adapter.add_photo(1001, "a.jpg", b"x")
        await adapter.remove(1001)
        assert photos.path_from_url(url) not in photos

    def test_photo_path_layout(self):
        path = photo_path(USER, 1001, "plano.jpeg")
        user, predio, name = path.split("/")
        assert (user, predio) == (USER, "1001")
        assert name.endswith(".jpeg")


# ---------------------------------------------------------------------------
# REST-backed stores
# ---------------------------------------------------------------------------

def _transport() -> StoreTransport:
    return StoreTransport(StoreConfig(base_url=BASE, api_key="anon", max_retries=0))


class TestRestFavoritesStore:
    async def test_list_for_user(self, httpx_mock):
        httpx_mock.add_response(
            method="GET",
            json=[{
                "id": 7,
                "predio_id": 1001,
                "created_at": "2026-05-01T10:00:00+00:00",
                "precio": 40000,
                "telefono": None,
                "servicios": ["Internet"],
                "estado": "visitado",
                "fotos": None,
                "predio_loja": {"clave_cata": "1101", "barrio": "Centro", "parroquia": "Sucre", "area_grafi": 250.0},
            }],
        )
        transport = _transport()
        try:
            rows = await RestFavoritesStore(transport).list_for_user(USER)
            assert rows[0].id == "7"
            assert rows[0].metadata.precio == 40000
            assert rows[0].metadata.fotos == []
            assert rows[0].predio.barrio == "Centro"

            request = httpx_mock.get_request()
            assert request.url.path == "/rest/v1/favoritos"
            assert request.url.params["user_id"] == f"eq.{USER}"
            assert request.url.params["order"] == "created_at.desc"
            assert "predio_loja(" in request.url.params["select"]
        finally:
            await transport.close()

    async def test_row_missing_key_raises_store_error(self, httpx_mock):
        httpx_mock.add_response(
            method="GET", json=[{"id": 7, "created_at": "2026-05-01T10:00:00+00:00"}]
        )
        transport = _transport()
        try:
            with pytest.raises(StoreError, match="Malformed favorito row"):
                await RestFavoritesStore(transport).list_for_user(USER)
        finally:
            await transport.close()

    async def test_insert_body(self, httpx_mock):
        httpx_mock.add_response(method="POST", status_code=201)
        transport = _transport()
        try:
            await RestFavoritesStore(transport).insert(USER, 1001, FavoritoMetadata(notas="ver"))
            body = json.loads(httpx_mock.get_request().content)
            assert body["user_id"] == USER
            assert body["predio_id"] == 1001
            assert body["notas"] == "ver"
            assert body["estado"] == "por_visitar"
        finally:
            await transport.close()

    async def test_conflict_raises(self, httpx_mock):
        httpx_mock.add_response(
            method="POST", status_code=409, json={"message": "duplicate key value"}
        )
        transport = _transport()
        try:
            with pytest.raises(StoreError, match="duplicate key"):
                await RestFavoritesStore(transport).insert(USER, 1001, FavoritoMetadata())
        finally:
            await transport.close()

    async def test_delete_filters_by_key(self, httpx_mock):
        httpx_mock.add_response(method="DELETE", status_code=204)
        transport = _transport()
        try:
            await RestFavoritesStore(transport).delete(USER, 1001)
            params = httpx_mock.get_request().url.params
            assert params["predio_id"] == "eq.1001"
            assert params["user_id"] == f"eq.{USER}"
        finally:
            await transport.close()


class TestRestPhotoStore:
    async def test_upload_returns_public_url(self, httpx_mock):
        httpx_mock.add_response(method="POST", json={"Key": "fotos-favoritos/u/1/a.jpg"})
        transport = _transport()
        try:
            store = RestPhotoStore(transport, StorageConfig())
            url = await store.upload("u/1/a.jpg", b"x", "image/jpeg")
            assert url == f"{BASE}/storage/v1/object/public/fotos-favoritos/u/1/a.jpg"
            assert store.path_from_url(url) == "u/1/a.jpg"
            request = httpx_mock.get_request()
            assert request.url.path == "/storage/v1/object/fotos-favoritos/u/1/a.jpg"
            assert request.headers["Content-Type"] == "image/jpeg"
        finally:
            await transport.close()

    def test_foreign_url_has_no_path(self):
        store = RestPhotoStore(_transport(), StorageConfig())
        assert store.path_from_url("https://elsewhere.test/a.jpg") is None
