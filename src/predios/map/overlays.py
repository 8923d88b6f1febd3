"""Session-scoped overlay caches (administrative boundaries, amenity points)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

from predios.core.types import OperationState
from predios.store.client import ParcelStoreClient, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OverlayCache(Generic[T]):
    """Memoise-once cache for one overlay, keyed by a fixed name.

    The loader runs on the first toggle-on; concurrent first toggles share
    the same in-flight fetch. Successful data is kept for the session and
    never re-fetched; a failed fetch is not memoised.
    """

    def __init__(self, key: str, loader: Callable[[], Awaitable[T]]) -> None:
        self.key = key
        self._loader = loader
        self._data: T | None = None
        self._loaded = False
        self._inflight: asyncio.Future[T] | None = None
        self.visible = False
        self.state = OperationState()
        self.fetch_count = 0

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def data(self) -> T | None:
        return self._data

    async def toggle(self, on: bool | None = None) -> T | None:
        """Show or hide the overlay, fetching lazily the first time it is shown."""
        self.visible = (not self.visible) if on is None else on
        if not self.visible:
            return self._data
        return await self.get()

    async def get(self) -> T | None:
        if self._loaded:
            return self._data
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._load())
        try:
            return await asyncio.shield(self._inflight)
        except StoreError:
            return None

    async def _load(self) -> T:
        self.state.start()
        self.fetch_count += 1
        logger.debug("Fetching overlay %s", self.key)
        try:
            data = await self._loader()
        except StoreError as exc:
            logger.warning("Overlay %s failed to load: %s", self.key, exc.message)
            self.state.fail(exc.message)
            raise
        finally:
            self._inflight = None
        self._data = data
        self._loaded = True
        self.state.succeed()
        return data


class OverlayRegistry:
    """The boundary overlays available on the map, one cache per kind."""

    KINDS = ("district", "neighborhood")

    def __init__(self, store: ParcelStoreClient) -> None:
        self._caches: dict[str, OverlayCache[Any]] = {
            kind: OverlayCache(kind, _boundary_loader(store, kind)) for kind in self.KINDS
        }

    def get(self, key: str) -> OverlayCache[Any]:
        if key not in self._caches:
            raise KeyError(f"Unknown overlay {key!r}")
        return self._caches[key]

    async def toggle(self, key: str, on: bool | None = None) -> Any:
        return await self.get(key).toggle(on)

    def visible_layers(self) -> dict[str, Any]:
        return {
            key: cache.data
            for key, cache in self._caches.items()
            if cache.visible and cache.loaded
        }


def _boundary_loader(store: ParcelStoreClient, kind: str) -> Callable[[], Awaitable[Any]]:
    async def load() -> Any:
        return await store.boundary_polygons(kind)  # type: ignore[arg-type]

    return load
