"""Remote parcel store clients."""

from predios.store.client import ParcelStoreClient, StoreError, create_store_client

__all__ = ["ParcelStoreClient", "StoreError", "create_store_client"]
