"""Predios: viewport-driven parcel exploration for municipal cadastral data."""

__version__ = "0.1.0"
