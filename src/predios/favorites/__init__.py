"""User shortlist (favoritos) with metadata and photos."""

from predios.favorites.adapter import FavoritesAdapter
from predios.favorites.models import (
    CARACTERISTICAS_OPTIONS,
    ESTADO_OPTIONS,
    SERVICIOS_OPTIONS,
    FavoriteEntry,
    FavoritoEstado,
    FavoritoMetadata,
)

__all__ = [
    "CARACTERISTICAS_OPTIONS",
    "ESTADO_OPTIONS",
    "SERVICIOS_OPTIONS",
    "FavoriteEntry",
    "FavoritesAdapter",
    "FavoritoEstado",
    "FavoritoMetadata",
]
