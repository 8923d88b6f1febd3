"""Selection & Highlight state machine and camera directives."""

from __future__ import annotations

import logging
from enum import StrEnum

from predios.core.config import MapConfig
from predios.geo.models import (
    FeatureCollection,
    FitBounds,
    FlyTarget,
    ParcelFeature,
    ParcelProperties,
)
from predios.map.coordinator import ParcelQueryCoordinator
from predios.map.render_model import ObservableCell, RenderModel

logger = logging.getLogger(__name__)

CameraDirective = FlyTarget | FitBounds


class SelectionState(StrEnum):
    IDLE = "idle"
    SELECTED = "selected"
    HIGHLIGHTED = "highlighted"


class SelectionController:
    """Decides which single parcel is selected and which one is highlighted.

    Highlighting a parcel (search hit or favorite locate) also selects it,
    the same way a click does, and asks the camera to fit its bounds.
    Search and locate share one in-flight slot: while a lookup is pending
    a second one is refused instead of racing the first.

    Args:
        coordinator: Issues the search and single-parcel lookups.
        render_model: Receives the selected id and highlighted feature.
        config: Camera parameters (fly duration, zooms, fit padding).
        couple_highlight_selection: When False, highlighting leaves the
            current selection untouched.
    """

    def __init__(
        self,
        coordinator: ParcelQueryCoordinator,
        render_model: RenderModel,
        config: MapConfig | None = None,
        couple_highlight_selection: bool = True,
    ) -> None:
        self._coordinator = coordinator
        self._model = render_model
        self._config = config or MapConfig()
        self._couple = couple_highlight_selection
        self._selected: ParcelProperties | None = None
        self._lookup_pending = False
        self.camera: ObservableCell[CameraDirective | None] = ObservableCell("camera", None)

    # -- state ---------------------------------------------------------------

    @property
    def state(self) -> SelectionState:
        if self._model.highlighted.get() is not None:
            return SelectionState.HIGHLIGHTED
        if self._selected is not None:
            return SelectionState.SELECTED
        return SelectionState.IDLE

    @property
    def selected(self) -> ParcelProperties | None:
        return self._selected

    @property
    def highlighted(self) -> ParcelFeature | None:
        return self._model.highlighted.get()

    @property
    def lookup_pending(self) -> bool:
        return self._lookup_pending

    # -- transitions ---------------------------------------------------------

    def click(self, properties: ParcelProperties) -> None:
        """A rendered parcel was clicked: select it and drop any highlight."""
        self._model.highlighted.set(None)
        self._select(properties)

    def clear(self) -> None:
        """Close the detail panel and return to Idle."""
        self._selected = None
        self._model.selected_id.set(None)
        self._model.highlighted.set(None)

    def highlight(self, feature: ParcelFeature | None) -> None:
        """Emphasise ``feature`` above the parcel layer; None removes the emphasis."""
        self._model.highlighted.set(feature)
        if feature is None:
            return
        bounds = feature.bounds()
        if bounds is not None and bounds.is_valid():
            self.camera.set(FitBounds(
                bounds=bounds,
                padding_px=self._config.fit_padding_px,
                max_zoom=self._config.fit_max_zoom,
                duration_seconds=self._config.fly_duration_seconds,
            ))
        if self._couple:
            self._select(feature.properties)

    async def search(self, code: str) -> FeatureCollection | None:
        """Search by cadastral code and highlight the first hit.

        Returns None when the search failed or was refused because another
        lookup is still pending.
        """
        code = code.strip()
        if not code:
            return None
        if self._lookup_pending:
            logger.info("Ignoring search %r: another lookup is pending", code)
            return None

        self._lookup_pending = True
        try:
            # Drop the old emphasis so it is not shown while the new search runs.
            self._model.highlighted.set(None)
            result = await self._coordinator.search_by_clave(code)
        finally:
            self._lookup_pending = False

        if result is not None and len(result) > 0:
            self.highlight(result.first())
        return result

    async def locate(self, parcel_id: int) -> ParcelFeature | None:
        """Fetch a parcel by id (favorite locate) and highlight it."""
        if self._lookup_pending:
            logger.info("Ignoring locate of %d: another lookup is pending", parcel_id)
            return None

        self._lookup_pending = True
        try:
            feature = await self._coordinator.get_predio_by_id(parcel_id)
        finally:
            self._lookup_pending = False

        if feature is not None:
            self.highlight(feature)
        return feature

    def fly_to(self, lat: float, lng: float, zoom: int | None = None) -> FlyTarget:
        target = FlyTarget(
            lat=lat,
            lng=lng,
            zoom=zoom if zoom is not None else self._config.default_fly_zoom,
            duration_seconds=self._config.fly_duration_seconds,
        )
        self.camera.set(target)
        return target

    def take_camera(self) -> CameraDirective | None:
        """Consume the pending camera directive; each one is delivered once."""
        directive = self.camera.get()
        if directive is not None:
            self.camera.set(None)
        return directive

    # -- internal ------------------------------------------------------------

    def _select(self, properties: ParcelProperties) -> None:
        self._selected = properties
        self._model.selected_id.set(properties.id)
