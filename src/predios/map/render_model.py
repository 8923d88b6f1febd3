"""Render Model: the single-slot "latest known good view" read by the renderer.

The model is three independent observable cells (feature set, selected id,
highlighted feature). Each cell is written by one logical update at a
time, so the renderer never observes a half-applied change and unrelated
channels never contend with each other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from predios.geo.models import FeatureCollection, ParcelFeature

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class ObservableCell(Generic[T]):
    """A value holder that notifies subscribers after every write."""

    def __init__(self, name: str, initial: T) -> None:
        self.name = name
        self._value = initial
        self._version = 0
        self._listeners: list[Listener[T]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._version += 1
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("Listener on %s cell failed", self.name)

    @property
    def version(self) -> int:
        """Number of writes so far; lets readers detect change cheaply."""
        return self._version

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


@dataclass(frozen=True)
class RenderSnapshot:
    """What the rendering layer paints in one frame."""

    feature_set: FeatureCollection | None
    selected_id: int | None
    highlighted: ParcelFeature | None

    def style_for(self, feature: ParcelFeature) -> str:
        return "selected" if feature.id == self.selected_id else "default"


class RenderModel:
    """Holds the currently displayed parcels, selection and highlight.

    ``highlighted`` is painted above ``feature_set`` and need not belong to
    it. ``selected_id`` may reference a parcel that a later bounds update
    evicted from ``feature_set``.
    """

    def __init__(self) -> None:
        self.feature_set: ObservableCell[FeatureCollection | None] = ObservableCell(
            "feature_set", None
        )
        self.selected_id: ObservableCell[int | None] = ObservableCell("selected_id", None)
        self.highlighted: ObservableCell[ParcelFeature | None] = ObservableCell(
            "highlighted", None
        )

    def snapshot(self) -> RenderSnapshot:
        return RenderSnapshot(
            feature_set=self.feature_set.get(),
            selected_id=self.selected_id.get(),
            highlighted=self.highlighted.get(),
        )

    @property
    def feature_count(self) -> int:
        features = self.feature_set.get()
        return len(features) if features is not None else 0
