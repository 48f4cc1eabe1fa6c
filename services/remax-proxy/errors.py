"""Error taxonomy for the proxy.

Every request-scoped error carries the HTTP status and the message shown
to the client. ``str(exc)`` keeps the detailed reason for the logs.
"""

from __future__ import annotations

from slowapi.errors import RateLimitExceeded

INTERNAL_ERROR_MESSAGE = "RE/MAX proxy internal error"
TIMEOUT_MESSAGE = "Error: RE/MAX API request timed out"
UNAUTHORIZED_MESSAGE = "Unauthorized: missing or invalid API key."


class ProxyError(Exception):
    """Base class for all proxy failures."""

    status_code: int = 500
    public_message: str = INTERNAL_ERROR_MESSAGE

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.public_message)


class ConfigError(ProxyError):
    """Required configuration is missing. Fatal at startup."""


class AuthError(ProxyError):
    status_code = 401
    public_message = UNAUTHORIZED_MESSAGE


# slowapi raises this once a client exceeds its quota (429).
RateLimitError = RateLimitExceeded


class UpstreamError(ProxyError):
    """The outbound call to the upstream API failed."""


class UpstreamStatusError(UpstreamError):
    """Upstream answered with a non-2xx status; relayed as-is."""

    def __init__(self, status_code: int, reason: str) -> None:
        self.status_code = status_code
        self.reason = reason
        self.public_message = f"RE/MAX API error: {reason}"
        super().__init__(f"upstream returned {status_code} {reason}")


class UpstreamTimeoutError(UpstreamError):
    status_code = 504
    public_message = TIMEOUT_MESSAGE


class UpstreamTransportError(UpstreamError):
    """DNS failure, refused or reset connection, TLS error..."""


class DecodingError(ProxyError):
    """The upstream declared a charset we cannot decode."""

    def __init__(self, charset: str) -> None:
        self.charset = charset
        super().__init__(f"unsupported charset {charset!r}")
