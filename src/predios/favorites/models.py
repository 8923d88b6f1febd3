"""Favorite (shortlist) data models."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class FavoritoEstado(StrEnum):
    """Where the user is in the buying process for a shortlisted parcel."""

    POR_VISITAR = "por_visitar"
    VISITADO = "visitado"
    CONTACTADO = "contactado"
    NEGOCIANDO = "negociando"
    DESCARTADO = "descartado"


ESTADO_OPTIONS: list[str] = [e.value for e in FavoritoEstado]

SERVICIOS_OPTIONS: list[str] = [
    "Agua potable",
    "Alcantarillado",
    "Electricidad",
    "Internet",
    "Gas",
    "Recolección de basura",
    "Transporte público",
    "Vía asfaltada",
]

CARACTERISTICAS_OPTIONS: list[str] = [
    "Esquinero",
    "Plano",
    "Con pendiente",
    "Con construcción",
    "Cerramiento",
    "Vista panorámica",
    "Escrituras en regla",
    "Cerca de vía principal",
]

_NULLABLE_TEXT = ("telefono", "contacto", "email_contacto", "notas")


class FavoritoMetadata(BaseModel):
    """Personal notes attached to a shortlisted parcel."""

    precio: float | None = None
    telefono: str | None = None
    contacto: str | None = None
    email_contacto: str | None = None
    notas: str | None = None
    servicios: list[str] = Field(default_factory=list)
    caracteristicas: list[str] = Field(default_factory=list)
    estado: FavoritoEstado = FavoritoEstado.POR_VISITAR
    calificacion: int | None = Field(default=None, ge=1, le=5)
    ultima_visita: date | None = None
    fotos: list[str] = Field(default_factory=list)

    @field_validator(*_NULLABLE_TEXT, mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("precio", "ultima_visita", "calificacion", mode="before")
    @classmethod
    def _empty_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("servicios", "caracteristicas", "fotos", mode="before")
    @classmethod
    def _dedupe(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return list(dict.fromkeys(value))
        return value

    def toggle_item(self, field: Literal["servicios", "caracteristicas"], item: str) -> FavoritoMetadata:
        """Return a copy with ``item`` added to or removed from a checklist field."""
        current: list[str] = getattr(self, field)
        if item in current:
            updated = [i for i in current if i != item]
        else:
            updated = [*current, item]
        return self.model_copy(update={field: updated})


class PredioSummary(BaseModel):
    """Parcel fields joined into the favorites list for display."""

    clave_cata: str | None = None
    barrio: str | None = None
    parroquia: str | None = None
    area_grafi: float | None = None


class FavoriteEntry(BaseModel):
    """One row of the user's shortlist."""

    id: str
    predio_id: int
    metadata: FavoritoMetadata = Field(default_factory=FavoritoMetadata)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    predio: PredioSummary | None = None

    @property
    def label(self) -> str:
        if self.predio and self.predio.clave_cata:
            return self.predio.clave_cata
        return f"Predio #{self.predio_id}"
