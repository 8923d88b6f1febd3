"""Blob storage for favorite photos."""

from __future__ import annotations

import mimetypes
import uuid
from typing import Protocol, runtime_checkable
from urllib.parse import quote, unquote

from predios.core.config import StorageConfig
from predios.store.http import StoreTransport


@runtime_checkable
class PhotoStore(Protocol):
    """Protocol for the external blob store."""

    async def upload(self, path: str, data: bytes, content_type: str) -> str: ...

    async def remove(self, path: str) -> None: ...

    def path_from_url(self, url: str) -> str | None: ...


def photo_path(user_id: str, predio_id: int, filename: str) -> str:
    """Build ``<user_id>/<predio_id>/<uuid>.<ext>`` for a new upload."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "jpg"
    return f"{user_id}/{predio_id}/{uuid.uuid4().hex}.{ext}"


def guess_content_type(filename: str) -> str:
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


class MemoryPhotoStore:
    """In-memory blob store for development/testing."""

    def __init__(self, bucket: str = "fotos-favoritos", base_url: str = "memory://photos") -> None:
        self._bucket = bucket
        self._base_url = base_url.rstrip("/")
        self._blobs: dict[str, tuple[bytes, str]] = {}

    def public_url(self, path: str) -> str:
        return f"{self._base_url}/{self._bucket}/{path}"

    def path_from_url(self, url: str) -> str | None:
        prefix = f"{self._base_url}/{self._bucket}/"
        return url[len(prefix):] if url.startswith(prefix) else None

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        self._blobs[path] = (data, content_type)
        return self.public_url(path)

    async def remove(self, path: str) -> None:
        self._blobs.pop(path, None)

    def __contains__(self, path: str) -> bool:
        return path in self._blobs


class RestPhotoStore:
    """Object storage behind ``/storage/v1/object/<bucket>/<path>``."""

    def __init__(self, transport: StoreTransport, config: StorageConfig) -> None:
        self._transport = transport
        self._bucket = config.bucket
        base = config.public_base_url or transport.config.base_url
        self._public_prefix = f"{base.rstrip('/')}/storage/v1/object/public/{self._bucket}/"

    def path_from_url(self, url: str) -> str | None:
        if not url.startswith(self._public_prefix):
            return None
        return unquote(url[len(self._public_prefix):])

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        resp = await self._transport.request(
            "POST",
            f"/storage/v1/object/{self._bucket}/{quote(path)}",
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "false"},
        )
        self._transport.decode(resp, "upload photo")
        return self._public_prefix + quote(path)

    async def remove(self, path: str) -> None:
        resp = await self._transport.request(
            "DELETE", f"/storage/v1/object/{self._bucket}/{quote(path)}"
        )
        self._transport.decode(resp, "remove photo")
