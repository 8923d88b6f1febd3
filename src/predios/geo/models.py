"""GIS data models for parcels, viewports and related lookups."""

from __future__ import annotations

from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field


class BBox(BaseModel):
    """A rectangle in geographic coordinates (WGS84 degrees)."""

    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float

    def intersects(self, other: BBox) -> bool:
        return not (
            other.min_lng > self.max_lng
            or other.max_lng < self.min_lng
            or other.min_lat > self.max_lat
            or other.max_lat < self.min_lat
        )

    def is_valid(self) -> bool:
        return self.min_lng <= self.max_lng and self.min_lat <= self.max_lat

    @property
    def center(self) -> tuple[float, float]:
        """Return ``(lat, lng)`` of the rectangle centre."""
        return (
            (self.min_lat + self.max_lat) / 2,
            (self.min_lng + self.max_lng) / 2,
        )


class Viewport(BaseModel):
    """Bounding box plus integer zoom level of the current map view."""

    model_config = ConfigDict(frozen=True)

    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float
    zoom: int

    @property
    def bbox(self) -> BBox:
        return BBox(
            min_lng=self.min_lng,
            min_lat=self.min_lat,
            max_lng=self.max_lng,
            max_lat=self.max_lat,
        )

    def allows_polygons(self, min_zoom: int) -> bool:
        return self.zoom >= min_zoom


class ParcelProperties(BaseModel):
    """Cadastral attributes of a parcel (predio)."""

    model_config = ConfigDict(extra="allow")

    id: int
    clave_cata: str | None = None
    prov_cant: str | None = None
    parroquia: str | None = None
    zona: str | None = None
    sector: str | None = None
    manzana: str | None = None
    lote: str | None = None
    area_grafi: float | None = None
    area_gim: float | None = None
    tipo_pred: str | None = None
    reg_prop: str | None = None
    ocup_gim: str | None = None
    barrio: str | None = None
    cedula: str | None = None
    fecha: str | None = None
    observacio: str | None = None
    ante_gim: str | None = None
    clave_rura: str | None = None


FIELD_LABELS: dict[str, str] = {
    "clave_cata": "Clave Catastral",
    "prov_cant": "Provincia/Cantón",
    "parroquia": "Parroquia",
    "barrio": "Barrio",
    "zona": "Zona",
    "sector": "Sector",
    "manzana": "Manzana",
    "lote": "Lote",
    "area_grafi": "Área Gráfica (m²)",
    "area_gim": "Área GIM (m²)",
    "tipo_pred": "Tipo de Predio",
    "reg_prop": "Registro Propiedad",
    "ocup_gim": "Ocupación GIM",
    "cedula": "Cédula",
    "fecha": "Fecha",
    "observacio": "Observaciones",
    "ante_gim": "Antecedente GIM",
    "clave_rura": "Clave Rural",
}


def _iter_positions(coords: Any) -> Iterator[tuple[float, float]]:
    # GeoJSON positions are [lng, lat, ...]; rings and parts nest arbitrarily.
    if not coords:
        return
    if isinstance(coords[0], (int, float)):
        yield float(coords[0]), float(coords[1])
        return
    for part in coords:
        yield from _iter_positions(part)


class ParcelFeature(BaseModel):
    """A GeoJSON Feature describing one parcel. Immutable once received."""

    model_config = ConfigDict(frozen=True)

    type: str = "Feature"
    geometry: dict[str, Any] | None = None
    properties: ParcelProperties

    @property
    def id(self) -> int:
        return self.properties.id

    def bounds(self) -> BBox | None:
        """Return the bounding box of the geometry, or None if it has none."""
        if not self.geometry:
            return None
        geometries = self.geometry.get("geometries")
        if geometries is not None:
            positions = [
                p for g in geometries for p in _iter_positions(g.get("coordinates"))
            ]
        else:
            positions = list(_iter_positions(self.geometry.get("coordinates")))
        if not positions:
            return None
        lngs = [p[0] for p in positions]
        lats = [p[1] for p in positions]
        return BBox(min_lng=min(lngs), min_lat=min(lats), max_lng=max(lngs), max_lat=max(lats))


class FeatureCollection(BaseModel):
    """A GeoJSON FeatureCollection of parcels."""

    model_config = ConfigDict(frozen=True)

    type: str = "FeatureCollection"
    features: tuple[ParcelFeature, ...] = ()

    @classmethod
    def empty(cls) -> FeatureCollection:
        return cls()

    def first(self) -> ParcelFeature | None:
        return self.features[0] if self.features else None

    def ids(self) -> list[int]:
        return [f.id for f in self.features]

    def __len__(self) -> int:
        return len(self.features)


class BoundaryCollection(BaseModel):
    """Administrative boundary polygons (districts or neighborhoods) as raw GeoJSON."""

    type: str = "FeatureCollection"
    features: list[dict[str, Any]] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.features)


class FlyTarget(BaseModel):
    """Camera directive towards explicit coordinates."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float
    zoom: int | None = None
    duration_seconds: float = 1.5


class FitBounds(BaseModel):
    """Camera directive fitting a feature's bounds."""

    model_config = ConfigDict(frozen=True)

    bounds: BBox
    padding_px: int = 50
    max_zoom: int = 18
    duration_seconds: float = 1.5


class ZoningRecord(BaseModel):
    """Land-use zoning attributes that apply to a parcel."""

    model_config = ConfigDict(extra="allow")

    clasificacion: str | None = None
    subclasificacion: str | None = None
    categoria: str | None = None
    pit: str | None = None
    cod_pit: str | None = None
    cos: float | None = None
    cus: float | None = None
    n_pisos: int | None = None
    retiro_frontal: float | None = None
    retiro_lateral: float | None = None
    retiro_posterior: float | None = None
    lote_min: float | None = None
    frente_min: float | None = None
    implantacion: str | None = None
    edificabilidad: str | None = None
    uso_general: str | None = None
    uso_principal: str | None = None
    uso_complementario: str | None = None
    uso_restringido: str | None = None
    uso_prohibido: str | None = None
    tratamiento: str | None = None
    densidad_bruta: float | None = None
    densidad_neta: float | None = None
    fondo: float | None = None


class SuitabilityRecord(BaseModel):
    """Physical-constructive aptitude of a parcel."""

    model_config = ConfigDict(extra="allow")

    categoria: str | None = None
    descripcion: str | None = None
    observaciones: str | None = None


class Amenity(BaseModel):
    """A public facility (equipamiento) near a parcel."""

    id: int
    categoria: str
    establecimiento: str = ""
    descripcion: str = ""
    estado: str = ""
    ubicacion: str = ""
    radio: float | None = None
    lat: float
    lng: float
    distancia: float = 0.0


class Centroid(BaseModel):
    lat: float
    lng: float
