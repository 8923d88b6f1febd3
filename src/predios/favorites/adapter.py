"""Favorites/Metadata Store Adapter.

Read-through cache over the remote favorites table for one user. Membership
checks are answered from a local set of parcel ids that mutations update
optimistically; the full list is always refetched after a mutation rather
than patched locally. The two may disagree until that refetch completes.
"""

from __future__ import annotations

import logging

from predios.core.types import OperationState
from predios.favorites.models import FavoriteEntry, FavoritoMetadata
from predios.favorites.photos import PhotoStore, guess_content_type, photo_path
from predios.favorites.store import FavoritesRepository
from predios.store.client import StoreError

logger = logging.getLogger(__name__)


class FavoritesAdapter:
    """The signed-in user's shortlist.

    Args:
        repository: The remote favorites table.
        user_id: Identity from the external identity provider; with no
            user every operation is a no-op.
        photos: Optional blob store for favorite photos.
    """

    def __init__(
        self,
        repository: FavoritesRepository,
        user_id: str | None,
        photos: PhotoStore | None = None,
    ) -> None:
        self._repo = repository
        self._user_id = user_id
        self._photos = photos
        self._favoritos: list[FavoriteEntry] = []
        self._ids: set[int] = set()
        self.state = OperationState()

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def favoritos(self) -> list[FavoriteEntry]:
        return list(self._favoritos)

    def is_favorito(self, predio_id: int) -> bool:
        return predio_id in self._ids

    def get(self, predio_id: int) -> FavoriteEntry | None:
        for entry in self._favoritos:
            if entry.predio_id == predio_id:
                return entry
        return None

    # -- read ----------------------------------------------------------------

    async def fetch(self) -> list[FavoriteEntry]:
        """Reload the full list from the store and rebuild the membership set."""
        if not self._user_id:
            return []
        self.state.start()
        try:
            rows = await self._repo.list_for_user(self._user_id)
        except StoreError as exc:
            logger.warning("Could not load favorites: %s", exc.message)
            self.state.fail(exc.message)
            return self.favoritos
        self._favoritos = rows
        self._ids = {row.predio_id for row in rows}
        self.state.succeed()
        return self.favoritos

    # -- mutations -----------------------------------------------------------

    async def add(self, predio_id: int, metadata: FavoritoMetadata | None = None) -> bool:
        if not self._user_id:
            return False
        try:
            await self._repo.insert(self._user_id, predio_id, metadata or FavoritoMetadata())
        except StoreError as exc:
            logger.warning("Could not add favorite %d: %s", predio_id, exc.message)
            self.state.fail(exc.message)
            return False
        self._ids.add(predio_id)
        await self.fetch()
        return True

    async def remove(self, predio_id: int) -> bool:
        if not self._user_id:
            return False
        entry = self.get(predio_id)
        try:
            await self._repo.delete(self._user_id, predio_id)
        except StoreError as exc:
            logger.warning("Could not remove favorite %d: %s", predio_id, exc.message)
            self.state.fail(exc.message)
            return False
        self._ids.discard(predio_id)
        if entry is not None:
            await self._discard_photos(entry.metadata.fotos)
        await self.fetch()
        return True

    async def update(self, predio_id: int, metadata: FavoritoMetadata) -> bool:
        if not self._user_id:
            return False
        try:
            await self._repo.update_metadata(self._user_id, predio_id, metadata)
        except StoreError as exc:
            logger.warning("Could not update favorite %d: %s", predio_id, exc.message)
            self.state.fail(exc.message)
            return False
        await self.fetch()
        return True

    async def toggle(self, predio_id: int) -> bool:
        """Add or remove ``predio_id``; returns the new membership."""
        if self.is_favorito(predio_id):
            await self.remove(predio_id)
        else:
            await self.add(predio_id)
        return self.is_favorito(predio_id)

    # -- photos --------------------------------------------------------------

    async def add_photo(self, predio_id: int, filename: str, data: bytes) -> str | None:
        """Upload a photo and append its public URL to the favorite's ``fotos``."""
        entry = self.get(predio_id)
        if entry is None or self._photos is None or not self._user_id:
            return None
        path = photo_path(self._user_id, predio_id, filename)
        try:
            url = await self._photos.upload(path, data, guess_content_type(filename))
        except StoreError as exc:
            logger.warning("Photo upload for %d failed: %s", predio_id, exc.message)
            self.state.fail(exc.message)
            return None
        metadata = entry.metadata.model_copy(update={"fotos": [*entry.metadata.fotos, url]})
        if not await self.update(predio_id, metadata):
            return None
        return url

    async def remove_photo(self, predio_id: int, url: str) -> bool:
        entry = self.get(predio_id)
        if entry is None or url not in entry.metadata.fotos:
            return False
        metadata = entry.metadata.model_copy(
            update={"fotos": [u for u in entry.metadata.fotos if u != url]}
        )
        if not await self.update(predio_id, metadata):
            return False
        await self._discard_photos([url])
        return True

    async def _discard_photos(self, urls: list[str]) -> None:
        if self._photos is None:
            return
        for url in urls:
            path = self._photos.path_from_url(url)
            if path is None:
                continue
            try:
                await self._photos.remove(path)
            except StoreError as exc:
                logger.warning("Could not delete photo %s: %s", path, exc.message)
