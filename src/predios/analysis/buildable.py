"""Deterministic buildable-area calculation from zoning coefficients."""

from __future__ import annotations

import logging
import math

from pydantic import BaseModel, Field

from predios.core.types import OperationState
from predios.geo.models import SuitabilityRecord, ZoningRecord
from predios.store.client import ParcelStoreClient, StoreError

logger = logging.getLogger(__name__)

# Average floor area of one dwelling unit, in m².
UNIT_AREA_M2 = 120.0


class Setbacks(BaseModel):
    frontal: float = 0.0
    lateral: float = 0.0
    posterior: float = 0.0


class BuildableEstimate(BaseModel):
    """What can be built on a lot under its zoning."""

    area_terreno: float
    cos: float = 0.0
    cus: float = 0.0
    pisos: int = 0
    area_planta_baja: float = 0.0
    area_total: float = 0.0
    unidades_estimadas: int = 0
    ocupacion_pct: float = 0.0
    setbacks: Setbacks = Field(default_factory=Setbacks)


class TechnicalRow(BaseModel):
    label: str
    value: str | float | int | None = None


def compute_buildable(area: float, zoning: ZoningRecord) -> BuildableEstimate:
    """Apply COS/CUS coefficients (percentages of the lot) to ``area``.

    Missing coefficients count as zero.
    """
    if area < 0:
        raise ValueError(f"Lot area must be non-negative, got {area}")

    cos = zoning.cos or 0.0
    cus = zoning.cus or 0.0
    pisos = zoning.n_pisos or 0
    area_planta = area * (cos / 100)
    area_total = area * (cus / 100)
    unidades = math.floor(area_total / UNIT_AREA_M2) if area_total > 0 else 0
    ocupacion = min(area_planta / area * 100, 100.0) if area > 0 else 0.0

    return BuildableEstimate(
        area_terreno=area,
        cos=cos,
        cus=cus,
        pisos=pisos,
        area_planta_baja=round(area_planta, 2),
        area_total=round(area_total, 2),
        unidades_estimadas=unidades,
        ocupacion_pct=round(ocupacion, 1),
        setbacks=Setbacks(
            frontal=zoning.retiro_frontal or 0.0,
            lateral=zoning.retiro_lateral or 0.0,
            posterior=zoning.retiro_posterior or 0.0,
        ),
    )


def technical_table(area: float, zoning: ZoningRecord) -> list[TechnicalRow]:
    """Labelled rows for the technical view of the calculator."""
    estimate = compute_buildable(area, zoning)
    return [
        TechnicalRow(label="Area del terreno", value=f"{area:.2f} m2"),
        TechnicalRow(label="Clasificacion", value=zoning.clasificacion),
        TechnicalRow(label="Subclasificacion", value=zoning.subclasificacion),
        TechnicalRow(label="Categoria", value=zoning.categoria),
        TechnicalRow(label="PIT", value=zoning.pit),
        TechnicalRow(label="Codigo PIT", value=zoning.cod_pit),
        TechnicalRow(label="COS (%)", value=zoning.cos),
        TechnicalRow(label="CUS (%)", value=zoning.cus),
        TechnicalRow(label="Numero de Pisos", value=zoning.n_pisos),
        TechnicalRow(label="Area planta baja", value=f"{estimate.area_planta_baja:.2f} m2"),
        TechnicalRow(label="Area total edificable", value=f"{estimate.area_total:.2f} m2"),
        TechnicalRow(label="Retiro frontal (m)", value=zoning.retiro_frontal),
        TechnicalRow(label="Retiro lateral (m)", value=zoning.retiro_lateral),
        TechnicalRow(label="Retiro posterior (m)", value=zoning.retiro_posterior),
        TechnicalRow(label="Lote minimo (m2)", value=zoning.lote_min),
        TechnicalRow(label="Frente minimo (m)", value=zoning.frente_min),
        TechnicalRow(label="Implantacion", value=zoning.implantacion),
        TechnicalRow(label="Edificabilidad", value=zoning.edificabilidad),
        TechnicalRow(label="Densidad bruta (hab/ha)", value=zoning.densidad_bruta),
        TechnicalRow(label="Densidad neta (hab/ha)", value=zoning.densidad_neta),
        TechnicalRow(label="Tratamiento", value=zoning.tratamiento),
        TechnicalRow(label="Uso general", value=zoning.uso_general),
        TechnicalRow(label="Uso principal", value=zoning.uso_principal),
        TechnicalRow(label="Uso complementario", value=zoning.uso_complementario),
        TechnicalRow(label="Uso restringido", value=zoning.uso_restringido),
        TechnicalRow(label="Uso prohibido", value=zoning.uso_prohibido),
    ]


class ZoningService:
    """Fetches zoning and aptitude for the parcel shown in the calculator panel.

    A None record means the parcel lies outside any classified area; that
    is a normal empty state, distinct from ``state.error``.
    """

    def __init__(self, store: ParcelStoreClient) -> None:
        self._store = store
        self.data: ZoningRecord | None = None
        self.suitability: SuitabilityRecord | None = None
        self.state = OperationState()

    async def get_zonificacion(self, parcel_id: int) -> ZoningRecord | None:
        self.state.start()
        try:
            record = await self._store.zoning_by_parcel(parcel_id)
        except StoreError as exc:
            logger.warning("Zoning lookup for %d failed: %s", parcel_id, exc.message)
            self.state.fail(exc.message)
            self.data = None
            return None
        self.data = record
        self.state.succeed()
        return record

    async def get_aptitud(self, parcel_id: int) -> SuitabilityRecord | None:
        try:
            record = await self._store.suitability_by_parcel(parcel_id)
        except StoreError as exc:
            logger.warning("Aptitude lookup for %d failed: %s", parcel_id, exc.message)
            self.state.fail(exc.message)
            self.suitability = None
            return None
        self.suitability = record
        return record

    async def estimate(self, parcel_id: int, area: float) -> BuildableEstimate | None:
        record = await self.get_zonificacion(parcel_id)
        if record is None:
            return None
        return compute_buildable(area, record)
