"""FastAPI application setup.

Creates a single ASGI app that serves:
  /proxy-remax  -- authenticated, rate-limited RE/MAX proxy
  /_health      -- Docker healthcheck

Middleware, outermost first: security headers, CORS, API key, rate limit.
The server is started as an asyncio task by the service's run().
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.cors import CORSMiddleware

from shared.log import get_logger

from api import routes
from api.auth import APIKeyMiddleware
from api.limiter import create_limiter, rate_limit_exceeded_handler
from api.security import SecurityHeadersMiddleware
from config import ProxySettings
from errors import RateLimitError
from forwarding import UpstreamClient

logger = get_logger("api.server")


def create_app(
    settings: ProxySettings,
    upstream: UpstreamClient | None = None,
) -> FastAPI:
    """Build the FastAPI app. Requires ``settings.api_key`` to be set."""
    api_key = settings.require_api_key()
    upstream = upstream or UpstreamClient(
        base_url=settings.upstream_url,
        timeout=settings.upstream_timeout_seconds,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        await upstream.close()

    app = FastAPI(
        title="RE/MAX Proxy",
        description=(
            "Authenticated, rate-limited proxy in front of the RE/MAX Québec "
            "listings API. Re-encodes the upstream XML to UTF-8."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.upstream = upstream

    # --- Rate limiting (innermost) ---
    app.state.limiter = create_limiter(settings)
    app.add_exception_handler(RateLimitError, rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_middleware(SlowAPIMiddleware)

    # --- Auth ---
    app.add_middleware(APIKeyMiddleware, api_key=api_key)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # --- Security headers (outermost) ---
    app.add_middleware(SecurityHeadersMiddleware)

    # app.routes must hold the APIRoute objects themselves: SlowAPIMiddleware
    # finds the endpoint, and with it the limit, by scanning them.
    app.router.routes.extend(routes.router.routes)

    logger.info(
        "api_app_created",
        upstream=settings.upstream_url,
        rate_limit=settings.rate_limit,
    )

    return app


def build_api_server(app: FastAPI, settings: ProxySettings) -> uvicorn.Server:
    """uvicorn server bound to ``settings.host:settings.port``.

    uvicorn's own loggers propagate to the root handler installed by
    ``shared.log.setup_logging``. X-Forwarded-For is ignored: the rate
    limiter keys on the socket peer address.
    """
    config = uvicorn.Config(
        app=app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level=settings.log_level.lower(),
        access_log=False,
        server_header=False,
        proxy_headers=False,
    )
    return uvicorn.Server(config)


async def run_api_server(server: uvicorn.Server, shutdown_event: asyncio.Event) -> None:
    """Serve until the server stops on its own or ``shutdown_event`` is set."""
    host, port = server.config.host, server.config.port
    logger.info("api_server_starting", host=host, port=port)

    serve_task = asyncio.create_task(server.serve())
    stop_task = asyncio.create_task(shutdown_event.wait())
    try:
        await asyncio.wait({serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        server.should_exit = True
        await serve_task
    finally:
        stop_task.cancel()

    logger.info("api_server_stopped", host=host, port=port)
