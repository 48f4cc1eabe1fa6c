"""RE/MAX proxy service: authenticated gateway to the RE/MAX Québec listings API.

Flow:
    client ──► security headers / CORS ──► API key ──► rate limit
           ──► /proxy-remax ──► upstream GET (10 s) ──► UTF-8 XML ──► client

Refuses to start (exit 1, nothing bound) when API_KEY is not configured.
"""

from __future__ import annotations

import asyncio
import sys

from shared.log import get_logger, setup_logging
from shared.service import BaseService

from api.server import build_api_server, create_app, run_api_server
from config import ProxySettings
from errors import ConfigError
from forwarding import UpstreamClient

SERVICE_NAME = "remax-proxy"


class RemaxProxyService(BaseService):
    name = SERVICE_NAME

    def __init__(self, settings: ProxySettings | None = None) -> None:
        self.settings: ProxySettings = settings or ProxySettings()
        super().__init__(settings=self.settings)

        self.upstream = UpstreamClient(
            base_url=self.settings.upstream_url,
            timeout=self.settings.upstream_timeout_seconds,
        )
        self.app = create_app(self.settings, upstream=self.upstream)

    async def run(self) -> None:
        self.logger.info(
            "remax_proxy_started",
            host=self.settings.host,
            port=self.settings.port,
            upstream=self.settings.upstream_url,
        )
        server = build_api_server(self.app, self.settings)
        await run_api_server(server, self.shutdown_event)

    async def shutdown(self) -> None:
        await self.upstream.close()
        await super().shutdown()


def main() -> None:
    settings = ProxySettings()
    setup_logging(settings.log_level, settings.log_format, service=SERVICE_NAME)
    logger = get_logger(SERVICE_NAME)
    try:
        settings.require_api_key()
    except ConfigError as exc:
        logger.error("config_error", detail=str(exc))
        sys.exit(1)

    asyncio.run(RemaxProxyService(settings).start())


if __name__ == "__main__":
    main()
