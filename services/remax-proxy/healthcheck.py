"""Docker HEALTHCHECK script for the remax-proxy service.

Calls /_health on the port the service listens on (PORT from the
environment or .env). Exit code 0 when it answers 200, 1 otherwise.
"""

import sys

import httpx

from config import ProxySettings

TIMEOUT_SECONDS = 5.0


def health_url(settings: ProxySettings) -> str:
    return f"http://127.0.0.1:{settings.port}/_health"


def main() -> None:
    url = health_url(ProxySettings())
    try:
        resp = httpx.get(url, timeout=TIMEOUT_SECONDS)
    except httpx.HTTPError:
        sys.exit(1)
    sys.exit(0 if resp.status_code == 200 else 1)


if __name__ == "__main__":
    main()
