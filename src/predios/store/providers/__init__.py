"""Provider registry for parcel store backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from predios.store.client import ParcelStoreClient

from predios.store.providers.memory import MemoryStoreClient
from predios.store.providers.rest import RestStoreClient

PROVIDER_REGISTRY: dict[str, type[ParcelStoreClient]] = {
    "memory": MemoryStoreClient,
    "rest": RestStoreClient,
}

__all__ = ["PROVIDER_REGISTRY", "MemoryStoreClient", "RestStoreClient"]
