"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class StoreConfig(BaseSettings):
    """Remote parcel store configuration."""

    model_config = {"env_prefix": "PREDIOS_STORE_"}

    provider: str = "memory"
    base_url: str = "http://localhost:54321"
    api_key: str | None = None
    timeout_seconds: float = 15.0
    max_retries: int = 2
    fixtures_path: str | None = None


class MapConfig(BaseSettings):
    """Map navigation and camera configuration."""

    model_config = {"env_prefix": "PREDIOS_MAP_"}

    min_zoom_polygons: int = 16
    debounce_ms: int = 300
    fly_duration_seconds: float = 1.5
    default_fly_zoom: int = 17
    location_fly_zoom: int = 16
    fit_padding_px: int = 50
    fit_max_zoom: int = 18
    initial_center: tuple[float, float] = (-3.99, -79.20)
    initial_zoom: int = 14


class StorageConfig(BaseSettings):
    """Blob storage configuration for favorite photos."""

    model_config = {"env_prefix": "PREDIOS_STORAGE_"}

    provider: str = "memory"
    bucket: str = "fotos-favoritos"
    public_base_url: str | None = None


class WMSConfig(BaseSettings):
    """Tile proxy configuration."""

    model_config = {"env_prefix": "PREDIOS_WMS_"}

    upstream_url: str = "http://sil.loja.gob.ec/geoserver/pugs_2023_2033/wms"
    timeout_seconds: float = 20.0
    cache_control: str = "s-maxage=3600, stale-while-revalidate=86400"


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "PREDIOS_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    store: StoreConfig = Field(default_factory=StoreConfig)
    map: MapConfig = Field(default_factory=MapConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    wms: WMSConfig = Field(default_factory=WMSConfig)
