"""Favorites table access: repository protocol, in-memory store and REST store."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from predios.favorites.models import FavoriteEntry, FavoritoMetadata, PredioSummary
from predios.store.client import StoreError
from predios.store.http import StoreTransport

_METADATA_FIELDS = tuple(FavoritoMetadata.model_fields)

_SELECT = ",".join(
    ["id", "predio_id", "created_at", *_METADATA_FIELDS]
) + ",predio_loja(clave_cata,barrio,parroquia,area_grafi)"


@runtime_checkable
class FavoritesRepository(Protocol):
    """Protocol for the remote favorites table, keyed by (user_id, predio_id)."""

    async def list_for_user(self, user_id: str) -> list[FavoriteEntry]: ...

    async def insert(
        self, user_id: str, predio_id: int, metadata: FavoritoMetadata
    ) -> None: ...

    async def delete(self, user_id: str, predio_id: int) -> None: ...

    async def update_metadata(
        self, user_id: str, predio_id: int, metadata: FavoritoMetadata
    ) -> None: ...


class MemoryFavoritesStore:
    """In-memory favorites table for development/testing."""

    def __init__(self, summaries: dict[int, PredioSummary] | None = None) -> None:
        self._rows: dict[tuple[str, int], FavoriteEntry] = {}
        self._summaries = dict(summaries or {})

    async def list_for_user(self, user_id: str) -> list[FavoriteEntry]:
        rows = [
            entry.model_copy(deep=True)
            for (uid, _), entry in self._rows.items()
            if uid == user_id
        ]
        rows.sort(key=lambda e: e.created_at, reverse=True)
        return rows

    async def insert(self, user_id: str, predio_id: int, metadata: FavoritoMetadata) -> None:
        key = (user_id, predio_id)
        if key in self._rows:
            raise StoreError(
                f"Parcel {predio_id} is already a favorite", status_code=409
            )
        self._rows[key] = FavoriteEntry(
            id=str(uuid.uuid4()),
            predio_id=predio_id,
            metadata=metadata.model_copy(deep=True),
            created_at=datetime.now(timezone.utc),
            predio=self._summaries.get(predio_id),
        )

    async def delete(self, user_id: str, predio_id: int) -> None:
        self._rows.pop((user_id, predio_id), None)

    async def update_metadata(
        self, user_id: str, predio_id: int, metadata: FavoritoMetadata
    ) -> None:
        entry = self._rows.get((user_id, predio_id))
        if entry is None:
            raise StoreError(f"Parcel {predio_id} is not a favorite", status_code=404)
        entry.metadata = metadata.model_copy(deep=True)

    @property
    def count(self) -> int:
        return len(self._rows)


class RestFavoritesStore:
    """Favorites table behind a PostgREST endpoint (``/rest/v1/favoritos``)."""

    def __init__(self, transport: StoreTransport, table: str = "favoritos") -> None:
        self._transport = transport
        self._path = f"/rest/v1/{table}"

    async def list_for_user(self, user_id: str) -> list[FavoriteEntry]:
        resp = await self._transport.request(
            "GET",
            self._path,
            params={
                "select": _SELECT,
                "user_id": f"eq.{user_id}",
                "order": "created_at.desc",
            },
        )
        rows = self._transport.decode(resp, "list favoritos") or []
        try:
            return [_row_to_entry(row) for row in rows]
        except (KeyError, ValueError) as exc:
            raise StoreError(f"Malformed favorito row: {exc}") from exc

    async def insert(self, user_id: str, predio_id: int, metadata: FavoritoMetadata) -> None:
        body = {"user_id": user_id, "predio_id": predio_id, **metadata.model_dump(mode="json")}
        resp = await self._transport.request(
            "POST", self._path, json=body, headers={"Prefer": "return=minimal"}
        )
        self._transport.decode(resp, "insert favorito")

    async def delete(self, user_id: str, predio_id: int) -> None:
        resp = await self._transport.request(
            "DELETE", self._path, params=_key_filter(user_id, predio_id)
        )
        self._transport.decode(resp, "delete favorito")

    async def update_metadata(
        self, user_id: str, predio_id: int, metadata: FavoritoMetadata
    ) -> None:
        resp = await self._transport.request(
            "PATCH",
            self._path,
            params=_key_filter(user_id, predio_id),
            json=metadata.model_dump(mode="json"),
            headers={"Prefer": "return=minimal"},
        )
        self._transport.decode(resp, "update favorito")


def _key_filter(user_id: str, predio_id: int) -> dict[str, str]:
    return {"user_id": f"eq.{user_id}", "predio_id": f"eq.{predio_id}"}


def _row_to_entry(row: dict[str, Any]) -> FavoriteEntry:
    metadata = {k: row[k] for k in _METADATA_FIELDS if row.get(k) is not None}
    summary = row.get("predio_loja")
    return FavoriteEntry(
        id=str(row["id"]),
        predio_id=row["predio_id"],
        created_at=row["created_at"],
        metadata=FavoritoMetadata(**metadata),
        predio=PredioSummary(**summary) if summary else None,
    )
