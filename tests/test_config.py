"""Tests for environment-driven settings."""

from __future__ import annotations

from predios.core.config import MapConfig, Settings, StoreConfig, WMSConfig


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.store.provider == "memory"
        assert settings.map.min_zoom_polygons == 16
        assert settings.map.debounce_ms == 300
        assert settings.storage.bucket == "fotos-favoritos"
        assert settings.wms.upstream_url.endswith("/pugs_2023_2033/wms")

    def test_store_env(self, monkeypatch):
        monkeypatch.setenv("PREDIOS_STORE_PROVIDER", "rest")
        monkeypatch.setenv("PREDIOS_STORE_BASE_URL", "https://abc.supabase.co")
        monkeypatch.setenv("PREDIOS_STORE_MAX_RETRIES", "5")
        config = StoreConfig()
        assert config.provider == "rest"
        assert config.base_url == "https://abc.supabase.co"
        assert config.max_retries == 5

    def test_map_env(self, monkeypatch):
        monkeypatch.setenv("PREDIOS_MAP_DEBOUNCE_MS", "150")
        monkeypatch.setenv("PREDIOS_MAP_MIN_ZOOM_POLYGONS", "15")
        config = MapConfig()
        assert config.debounce_ms == 150
        assert config.min_zoom_polygons == 15

    def test_wms_cache_control_default(self):
        assert WMSConfig().cache_control == "s-maxage=3600, stale-while-revalidate=86400"
