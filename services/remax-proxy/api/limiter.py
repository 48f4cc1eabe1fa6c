"""Per-client rate limiting backed by slowapi.

Each app gets its own ``Limiter`` (and so its own in-memory counters),
attached to ``app.state.limiter`` and enforced by ``SlowAPIMiddleware``
on every route. Clients are keyed by remote IP.
"""

from __future__ import annotations

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import Response

from shared.log import get_logger

from config import ProxySettings
from errors import RateLimitError

logger = get_logger("api.limiter")


def create_limiter(settings: ProxySettings) -> Limiter:
    """Fixed-window limiter, e.g. 100 requests per 15 minutes per IP."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        headers_enabled=True,
        storage_uri="memory://",
        strategy="fixed-window",
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitError) -> Response:
    # Called synchronously by SlowAPIMiddleware, so this must stay a plain def.
    logger.warning(
        "rate_limit_exceeded",
        client=get_remote_address(request),
        path=request.url.path,
        limit=str(exc.detail),
    )
    return _rate_limit_exceeded_handler(request, exc)
