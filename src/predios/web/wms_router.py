"""FastAPI router proxying WMS tile requests to the municipal GeoServer."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from predios.core.config import WMSConfig

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/wms")
async def proxy_wms(request: Request) -> Response:
    """Forward a GetMap (or any WMS) request and relay the image.

    Browsers cannot load the GeoServer tiles directly over plain HTTP from
    an HTTPS page, so tiles are fetched server-side and cached downstream.
    """
    config: WMSConfig = request.app.state.settings.wms
    http: httpx.AsyncClient = request.app.state.wms_http
    params = dict(request.query_params)

    try:
        upstream = await http.get(
            config.upstream_url,
            params=params,
            timeout=config.timeout_seconds,
            follow_redirects=True,
        )
    except httpx.HTTPError as exc:
        logger.error("WMS proxy request failed: %s", exc)
        return PlainTextResponse("Failed to fetch from GeoServer", status_code=502)

    if upstream.status_code >= 300:
        logger.warning("GeoServer answered %d for %s", upstream.status_code, params)
        return PlainTextResponse("GeoServer error", status_code=upstream.status_code)

    return Response(
        content=upstream.content,
        media_type=upstream.headers.get("content-type", "image/png"),
        headers={
            "Cache-Control": config.cache_control,
            "Access-Control-Allow-Origin": "*",
        },
    )
