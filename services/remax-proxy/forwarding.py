"""Upstream request building and forwarding for the RE/MAX listings API.

Usage:
    from forwarding import UpstreamClient, parse_forward_request

    upstream = UpstreamClient()
    xml = await upstream.forward(parse_forward_request({"id": "17248"}))
    await upstream.close()
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import astuple, dataclass, fields
from urllib.parse import quote

import httpx

from shared.log import get_logger

from encoding import parse_charset, normalize_to_utf8
from errors import (
    UpstreamStatusError,
    UpstreamTimeoutError,
    UpstreamTransportError,
)

logger = get_logger("forwarding")

DEFAULT_UPSTREAM_URL = (
    "https://www.remax-quebec.com/RMXServices/strateo/getInscriptions/call.do"
)
UPSTREAM_TIMEOUT_SECONDS = 10.0

# Query defaults applied when the client omits a parameter
DEFAULT_TYPE = "agent"
DEFAULT_ID = "17248"
DEFAULT_LANG = "fr"
DEFAULT_PAGE = "1"
DEFAULT_QTY = "10"
DEFAULT_ORDER = "prix"
DEFAULT_DIRECTION = "desc"
DEFAULT_FILTER = ""

# Left unescaped by encodeURIComponent on top of quote()'s "_.-~"
_COMPONENT_SAFE = "!*'()"


@dataclass(frozen=True)
class ForwardRequest:
    """Query parameters sent upstream, in upstream order."""

    type: str = DEFAULT_TYPE
    id: str = DEFAULT_ID
    lang: str = DEFAULT_LANG
    page: str = DEFAULT_PAGE
    qty: str = DEFAULT_QTY
    order: str = DEFAULT_ORDER
    direction: str = DEFAULT_DIRECTION
    filter: str = DEFAULT_FILTER

    def as_params(self) -> list[tuple[str, str]]:
        """(name, value) pairs in FORWARD_PARAMS order, not yet encoded."""
        return list(zip(FORWARD_PARAMS, astuple(self)))


FORWARD_PARAMS: tuple[str, ...] = tuple(f.name for f in fields(ForwardRequest))


@dataclass(frozen=True)
class UpstreamResponse:
    status_code: int
    reason_phrase: str
    content_type: str
    body: bytes

    @property
    def charset(self) -> str:
        return parse_charset(self.content_type)


def parse_forward_request(query: Mapping[str, str]) -> ForwardRequest:
    """Pick the recognised parameters out of an inbound query string.

    Anything else (``api_key`` included) is ignored; missing keys keep
    their defaults. A present-but-empty value stays empty.
    """
    values = {name: query[name] for name in FORWARD_PARAMS if name in query}
    return ForwardRequest(**values)


def encode_component(value: str) -> str:
    """Percent-encode like JavaScript's encodeURIComponent (space -> %20)."""
    return quote(value, safe=_COMPONENT_SAFE)


def build_upstream_url(
    request: ForwardRequest, base_url: str = DEFAULT_UPSTREAM_URL
) -> str:
    query = "&".join(
        f"{name}={encode_component(value)}" for name, value in request.as_params()
    )
    return f"{base_url}?{query}"


class UpstreamClient:
    """Async client for the single upstream listings endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_UPSTREAM_URL,
        timeout: float = UPSTREAM_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def fetch(self, request: ForwardRequest) -> UpstreamResponse:
        """Issue the outbound GET and read the whole body.

        Raises UpstreamStatusError for non-2xx answers, UpstreamTimeoutError
        when the deadline passes and UpstreamTransportError otherwise.
        """
        url = build_upstream_url(request, self.base_url)
        client = await self._get_client()
        try:
            resp = await client.get(url)
        except httpx.TimeoutException as exc:
            raise UpstreamTimeoutError(f"no answer within {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise UpstreamTransportError(f"{type(exc).__name__}: {exc}") from exc

        if not resp.is_success:
            raise UpstreamStatusError(resp.status_code, resp.reason_phrase)

        return UpstreamResponse(
            status_code=resp.status_code,
            reason_phrase=resp.reason_phrase,
            content_type=resp.headers.get("content-type", ""),
            body=resp.content,
        )

    async def forward(self, request: ForwardRequest) -> str:
        """Fetch the listings and return them as text, ready for UTF-8."""
        upstream = await self.fetch(request)
        text = normalize_to_utf8(upstream.body, upstream.charset)
        logger.debug(
            "upstream_payload_normalized",
            charset=upstream.charset,
            size_bytes=len(upstream.body),
        )
        return text
