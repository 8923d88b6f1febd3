"""Shared HTTP transport for PostgREST-style store endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from predios.core.config import StoreConfig
from predios.store.client import StoreError

logger = logging.getLogger(__name__)


class StoreTransport:
    """Thin wrapper over ``httpx.AsyncClient`` with timeout and retry.

    Transport errors, timeouts and 5xx responses are retried with
    exponential backoff; 4xx responses are returned to the caller at once.
    Anything still failing after the last attempt becomes a StoreError.
    """

    def __init__(
        self,
        config: StoreConfig,
        access_token: str | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        headers: dict[str, str] = {"Accept": "application/json"}
        if config.api_key:
            headers["apikey"] = config.api_key
        token = access_token or config.api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = http or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            headers=headers,
        )

    async def rpc(self, name: str, params: dict[str, Any] | None = None) -> Any:
        """Call a remote procedure and return the decoded JSON body."""
        resp = await self.request("POST", f"/rest/v1/rpc/{name}", json=params or {})
        return self.decode(resp, f"rpc {name}")

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        max_attempts = max(1, self.config.max_retries + 1)

        for attempt in range(max_attempts):
            try:
                resp = await self._http.request(method, url, **kwargs)
            except httpx.TimeoutException as exc:
                if attempt < max_attempts - 1:
                    await self._backoff(url, f"timeout: {exc}", attempt, max_attempts)
                    continue
                raise StoreError(f"Request to {url} timed out") from exc
            except httpx.TransportError as exc:
                if attempt < max_attempts - 1:
                    await self._backoff(url, f"transport error: {exc}", attempt, max_attempts)
                    continue
                raise StoreError(f"Could not reach store at {url}: {exc}") from exc

            if resp.status_code < 500:
                return resp
            if attempt < max_attempts - 1:
                await self._backoff(url, f"status {resp.status_code}", attempt, max_attempts)
                continue
            return resp

        raise StoreError(f"Request to {url} failed")  # pragma: no cover

    @staticmethod
    def decode(resp: httpx.Response, what: str) -> Any:
        if resp.status_code >= 400:
            raise StoreError(_error_message(resp, what), status_code=resp.status_code)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise StoreError(f"{what} returned invalid JSON") from exc

    async def close(self) -> None:
        await self._http.aclose()

    async def _backoff(self, url: str, reason: str, attempt: int, max_attempts: int) -> None:
        delay = 0.5 * (2 ** attempt)
        logger.warning(
            "Request to %s failed (%s), retrying in %.1fs (%d/%d)",
            url, reason, delay, attempt + 1, max_attempts,
        )
        await asyncio.sleep(delay)


def _error_message(resp: httpx.Response, what: str) -> str:
    # PostgREST errors carry a JSON body with "message".
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"{what} failed with status {resp.status_code}"
