"""REST routes for the proxy.

Endpoints:
    GET  /_health       -- Docker healthcheck (no auth)
    GET  /proxy-remax   -- Forward to the RE/MAX listings API, UTF-8 XML back
"""

from __future__ import annotations

import time

from fastapi import APIRouter
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from shared.log import get_logger

from errors import INTERNAL_ERROR_MESSAGE, ProxyError
from forwarding import UpstreamClient, parse_forward_request

logger = get_logger("api.routes")

XML_MEDIA_TYPE = "application/xml; charset=utf-8"

router = APIRouter(tags=["proxy"])


@router.get("/_health", tags=["health"])
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/proxy-remax")
async def proxy_remax(request: Request) -> Response:
    """Relay the listings for the requested agent/page as UTF-8 XML.

    Upstream failures map to: same status for non-2xx answers, 504 on
    timeout, 500 for anything else.
    """
    forward = parse_forward_request(request.query_params)
    upstream: UpstreamClient = request.app.state.upstream
    started = time.monotonic()

    try:
        body = await upstream.forward(forward)
    except ProxyError as exc:
        logger.warning(
            "proxy_request_failed",
            error=type(exc).__name__,
            detail=str(exc),
            status=exc.status_code,
        )
        return PlainTextResponse(exc.public_message, status_code=exc.status_code)
    except Exception:
        logger.exception("proxy_request_crashed")
        return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=500)

    logger.info(
        "proxy_request_forwarded",
        type=forward.type,
        id=forward.id,
        page=forward.page,
        duration_ms=round((time.monotonic() - started) * 1000),
    )
    return Response(content=body, media_type=XML_MEDIA_TYPE)
