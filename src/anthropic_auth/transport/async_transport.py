"""Non-blocking transport backed by :class:`httpx.AsyncClient`.

:class:`httpx.AsyncClient` runs on :mod:`anyio`, so this transport works
under any event loop anyio supports (asyncio, trio). Nothing here starts
tasks or holds locks; a cancelled ``await`` simply abandons the request.

See Also:
    :class:`~anthropic_auth.transport.sync_transport.HttpxTransport` for the
    blocking equivalent.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from anthropic_auth.exceptions import TransportError
from anthropic_auth.transport.base import AsyncTransport, HTTPResponse
from anthropic_auth.transport.sync_transport import (
    DEFAULT_HEADERS,
    DEFAULT_TIMEOUT,
    to_http_response,
)

logger = logging.getLogger(__name__)


class AsyncHttpxTransport(AsyncTransport):
    """Asynchronous HTTP transport.

    Mirrors :class:`~anthropic_auth.transport.sync_transport.HttpxTransport`
    but suspends instead of blocking.

    Args:
        client: Optional pre-configured :class:`httpx.AsyncClient`, owned
            by the caller.
        timeout: Request timeout in seconds for a client built internally.
        verify_ssl: Verify TLS certificates for a client built internally.

    Example::

        async with AsyncHttpxTransport() as transport:
            response = await transport.post_form(url, params)
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
    ) -> None:
        self._owns_client = client is None
        self._client = (
            client if client is not None else httpx.AsyncClient(timeout=timeout, verify=verify_ssl)
        )

    async def __aenter__(self) -> AsyncHttpxTransport:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def post_form(
        self,
        url: str,
        params: Mapping[str, str],
        headers: Optional[Mapping[str, str]] = None,
    ) -> HTTPResponse:
        return await self._send(url, headers, data=dict(params))

    async def post_json(
        self,
        url: str,
        body: Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HTTPResponse:
        return await self._send(url, headers, json=body)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _send(
        self, url: str, headers: Optional[Mapping[str, str]], **kwargs: Any
    ) -> HTTPResponse:
        merged = {**DEFAULT_HEADERS, **(headers or {})}
        try:
            response = await self._client.post(url, headers=merged, **kwargs)
        # InvalidURL and header encoding failures are not httpx.HTTPError subclasses
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise TransportError(f"POST {url} failed: {exc}") from exc
        logger.debug("POST %s -> %s", url, response.status_code)
        return to_http_response(response)
