"""Health check for the configured parcel store."""

from __future__ import annotations

import time

from predios.core.types import HealthStatus
from predios.store.client import ParcelStoreClient


async def check_store_health(client: ParcelStoreClient) -> HealthStatus:
    """Probe the store backend and return a HealthStatus."""

    service = f"store:{client.config.provider}"
    try:
        start = time.monotonic()
        available = await client.is_available()
        latency_ms = (time.monotonic() - start) * 1000

        return HealthStatus(
            service=service,
            healthy=available,
            latency_ms=round(latency_ms, 2),
            details={"base_url": client.config.base_url},
        )
    except Exception as exc:
        return HealthStatus(
            service=service,
            healthy=False,
            details={"error": str(exc)},
        )
