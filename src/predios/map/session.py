"""Map session: wires the viewport pipeline, selection and favorites together.

This is the entry point for a client shell (desktop, notebook or web
front-end). The shell forwards user actions here and paints
``session.model.snapshot()`` plus any camera directive it takes.
"""

from __future__ import annotations

from predios.analysis.buildable import ZoningService
from predios.analysis.surroundings import SurroundingsService
from predios.core.config import MapConfig
from predios.favorites.adapter import FavoritesAdapter
from predios.favorites.photos import PhotoStore
from predios.favorites.store import FavoritesRepository
from predios.geo.models import (
    FeatureCollection,
    FlyTarget,
    ParcelFeature,
    ParcelProperties,
    Viewport,
)
from predios.map.coordinator import ParcelQueryCoordinator
from predios.map.overlays import OverlayRegistry
from predios.map.render_model import RenderModel
from predios.map.selection import SelectionController
from predios.map.viewport import ViewportTracker
from predios.store.client import ParcelStoreClient

# Half-width, in degrees, of the initial view around the configured centre.
_INITIAL_HALF_SPAN = 0.01


def initial_viewport(config: MapConfig) -> Viewport:
    lat, lng = config.initial_center
    return Viewport(
        min_lng=lng - _INITIAL_HALF_SPAN,
        min_lat=lat - _INITIAL_HALF_SPAN,
        max_lng=lng + _INITIAL_HALF_SPAN,
        max_lat=lat + _INITIAL_HALF_SPAN,
        zoom=config.initial_zoom,
    )


class MapSession:
    """One user's map: parcels in view, selection, overlays and shortlist.

    Args:
        store: Client for the remote parcel store. Not closed by the session.
        config: Map parameters. Defaults to MapConfig().
        favorites_repository: Remote favorites table; favorites are
            disabled when omitted.
        user_id: Signed-in user from the external identity provider.
        photos: Blob store for favorite photos.
        viewport: Initial camera view.
    """

    def __init__(
        self,
        store: ParcelStoreClient,
        config: MapConfig | None = None,
        favorites_repository: FavoritesRepository | None = None,
        user_id: str | None = None,
        photos: PhotoStore | None = None,
        viewport: Viewport | None = None,
    ) -> None:
        self.config = config or MapConfig()
        self.model = RenderModel()
        self.coordinator = ParcelQueryCoordinator(
            store, self.model, min_zoom=self.config.min_zoom_polygons
        )
        self.selection = SelectionController(self.coordinator, self.model, self.config)
        self.overlays = OverlayRegistry(store)
        self.zoning = ZoningService(store)
        self.surroundings = SurroundingsService(store)
        self.favorites: FavoritesAdapter | None = None
        if favorites_repository is not None:
            self.favorites = FavoritesAdapter(favorites_repository, user_id, photos)

        self._viewport = viewport or initial_viewport(self.config)
        self.tracker = ViewportTracker(
            read_viewport=lambda: self._viewport,
            on_change=self._load_bounds,
            debounce_ms=self.config.debounce_ms,
        )

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def below_min_zoom(self) -> bool:
        """True when the shell should show the "zoom in to see parcels" hint."""
        return not self._viewport.allows_polygons(self.config.min_zoom_polygons)

    async def open(self) -> None:
        """Mount the map (seeding the first bounds fetch) and load favorites."""
        self.tracker.mount()
        if self.favorites is not None:
            await self.favorites.fetch()

    async def close(self) -> None:
        """Tear down the map; pending debounced fetches are discarded."""
        self.tracker.teardown()
        await self.tracker.drain()

    # -- map events ----------------------------------------------------------

    async def _load_bounds(self, viewport: Viewport) -> bool:
        applied = await self.coordinator.load_by_bounds(viewport)
        if not applied and self.coordinator.bounds_state.error is not None:
            # A failed view must be refetched even if the map settles on it again.
            self.tracker.invalidate()
        return applied

    def on_map_settled(self, viewport: Viewport) -> None:
        """The map finished a pan or zoom; ``viewport`` is where it came to rest."""
        self._viewport = viewport
        self.tracker.settle()

    def click_parcel(self, properties: ParcelProperties) -> None:
        self.selection.click(properties)

    def clear_selection(self) -> None:
        self.selection.clear()

    # -- search --------------------------------------------------------------

    async def search_clave(self, code: str) -> FeatureCollection | None:
        result = await self.selection.search(code)
        if result is not None:
            # The feature set now holds search hits; the next settle must refetch.
            self.tracker.invalidate()
        return result

    def search_location(self, lat: float, lng: float) -> FlyTarget:
        """Fly to a geographic position (e.g. a GPS fix)."""
        return self.selection.fly_to(lat, lng, zoom=self.config.location_fly_zoom)

    # -- favorites -----------------------------------------------------------

    async def locate_favorite(self, predio_id: int) -> ParcelFeature | None:
        return await self.selection.locate(predio_id)

    def is_selected_favorite(self) -> bool:
        selected = self.selection.selected
        if selected is None or self.favorites is None:
            return False
        return self.favorites.is_favorito(selected.id)

    async def toggle_favorite_selected(self) -> bool | None:
        """Toggle the selected parcel's membership; None when nothing applies."""
        selected = self.selection.selected
        if selected is None or self.favorites is None:
            return None
        return await self.favorites.toggle(selected.id)
