"""Parcel Query Coordinator.

Turns viewport changes and explicit lookups into store calls and applies
their results to the Render Model. Bounds fetches are guarded by a request
epoch: a response is applied only if no newer bounds fetch was issued
while it was in flight. Superseded requests still complete; only their
effect is dropped.
"""

from __future__ import annotations

import logging

from predios.core.types import OperationState
from predios.geo.models import FeatureCollection, ParcelFeature, Viewport
from predios.map.render_model import RenderModel
from predios.store.client import ParcelStoreClient, StoreError

logger = logging.getLogger(__name__)

MIN_ZOOM_POLYGONS_FETCH = 16


class ParcelQueryCoordinator:
    """Issues parcel queries and reconciles their results with the Render Model.

    Args:
        store: Client for the remote parcel store.
        render_model: The Render Model whose feature-set channel this writes.
        min_zoom: Zoom below which no polygons are fetched or shown.
    """

    def __init__(
        self,
        store: ParcelStoreClient,
        render_model: RenderModel,
        min_zoom: int = MIN_ZOOM_POLYGONS_FETCH,
    ) -> None:
        self._store = store
        self._model = render_model
        self._min_zoom = min_zoom
        self._epoch = 0
        self.bounds_state = OperationState()
        self.search_state = OperationState()
        self.locate_state = OperationState()

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def loading(self) -> bool:
        return self.bounds_state.loading or self.search_state.loading

    async def load_by_bounds(self, viewport: Viewport) -> bool:
        """Fetch the parcels inside ``viewport`` and show them if still current.

        Returns True when the result (or the empty below-zoom view) was
        applied, False when it was suppressed as stale or the fetch failed.
        """
        if not viewport.allows_polygons(self._min_zoom):
            # Below the zoom gate: deliberate empty view, no network call.
            # The epoch still advances so in-flight fetches cannot repaint.
            self._epoch += 1
            self.bounds_state.succeed()
            self._model.feature_set.set(FeatureCollection.empty())
            return True

        self._epoch += 1
        epoch = self._epoch
        self.bounds_state.start()

        try:
            result = await self._store.parcels_in_bbox(viewport.bbox)
        except StoreError as exc:
            if epoch != self._epoch:
                logger.debug("Discarding failed stale bounds fetch (epoch %d)", epoch)
                return False
            logger.warning("Bounds fetch failed: %s", exc.message)
            self.bounds_state.fail(exc.message)
            return False

        if epoch != self._epoch:
            logger.debug(
                "Discarding stale bounds response (epoch %d, current %d)", epoch, self._epoch
            )
            return False

        self._model.feature_set.set(result)
        self.bounds_state.succeed()
        return True

    async def search_by_clave(self, code: str) -> FeatureCollection | None:
        """Look parcels up by cadastral code and replace the map content.

        Search results are not subject to epoch suppression. Returns the
        collection (possibly empty) or None on failure.
        """
        self.search_state.start()
        try:
            result = await self._store.parcels_by_code(code)
        except StoreError as exc:
            logger.warning("Search for %r failed: %s", code, exc.message)
            self.search_state.fail(exc.message)
            return None

        self._model.feature_set.set(result)
        self.search_state.succeed()
        return result

    async def get_predio_by_id(self, parcel_id: int) -> ParcelFeature | None:
        """Fetch one parcel for the highlight path; never touches the feature set."""
        self.locate_state.start()
        try:
            feature = await self._store.parcel_by_id(parcel_id)
        except StoreError as exc:
            logger.warning("Lookup of parcel %d failed: %s", parcel_id, exc.message)
            self.locate_state.fail(exc.message)
            return None
        self.locate_state.succeed()
        return feature
