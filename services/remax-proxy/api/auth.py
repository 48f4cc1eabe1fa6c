"""API key authentication middleware.

Validates the ``api_key`` query parameter against the configured API_KEY.
Exempt paths: /_health (Docker healthcheck).
"""

from __future__ import annotations

import hmac

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from shared.log import get_logger

from errors import AuthError

logger = get_logger("api.auth")

API_KEY_PARAM = "api_key"
EXEMPT_PATHS = ("/_health",)


def verify_api_key(provided: str | None, expected: str) -> None:
    """Raise AuthError unless ``provided`` equals ``expected``.

    Constant-time comparison on the UTF-8 bytes.
    """
    if not provided:
        raise AuthError("missing api_key")
    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise AuthError("api_key mismatch")


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Reject requests without a valid API key."""

    def __init__(self, app, api_key: str) -> None:  # type: ignore[override]
        super().__init__(app)
        self._api_key = api_key

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        try:
            verify_api_key(request.query_params.get(API_KEY_PARAM), self._api_key)
        except AuthError as exc:
            logger.info(
                "auth_rejected",
                path=request.url.path,
                client=request.client.host if request.client else None,
                reason=str(exc),
            )
            return JSONResponse(
                {"error": exc.public_message},
                status_code=exc.status_code,
            )
        return await call_next(request)
