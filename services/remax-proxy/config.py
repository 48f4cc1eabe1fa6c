"""RE/MAX proxy service configuration.

Extends the shared Settings with the listening address, the shared-secret
API key, the upstream endpoint and the rate-limit quota.
"""

from __future__ import annotations

from shared.config import Settings as BaseSettings

from errors import ConfigError
from forwarding import DEFAULT_UPSTREAM_URL, UPSTREAM_TIMEOUT_SECONDS


class ProxySettings(BaseSettings):
    # --- HTTP server ---
    host: str = "0.0.0.0"
    port: int = 3000

    # --- Auth ---
    api_key: str = ""  # shared secret expected in the api_key query parameter

    # --- Upstream ---
    upstream_url: str = DEFAULT_UPSTREAM_URL
    upstream_timeout_seconds: float = UPSTREAM_TIMEOUT_SECONDS

    # --- Rate limiting (per client IP) ---
    rate_limit_max_requests: int = 100
    rate_limit_window_minutes: int = 15

    # --- CORS ---
    cors_allow_origins: str = "*"  # comma-separated

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

    @property
    def rate_limit(self) -> str:
        """Quota in the limits notation, e.g. ``100 per 15 minutes``."""
        return f"{self.rate_limit_max_requests} per {self.rate_limit_window_minutes} minutes"

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigError("API_KEY is not set; refusing to start without a shared secret")
        return self.api_key
