"""Asynchronous OAuth client -- mirrors :class:`~anthropic_auth.client.sync_client.OAuthClient`.

:class:`AsyncOAuthClient` offers the same operations but awaits its
transport instead of blocking. It depends on no particular event loop:
the default :class:`~anthropic_auth.transport.AsyncHttpxTransport` runs on
anyio, and a custom :class:`~anthropic_auth.transport.AsyncTransport` can
use anything that can be awaited.

:meth:`start_flow` stays synchronous because it performs no I/O.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from anthropic_auth.client.shared import (
    BaseOAuthClient,
    Clock,
    build_api_key_headers,
    build_exchange_request,
    build_refresh_request,
    parse_api_key_response,
    parse_token_response,
)
from anthropic_auth.models import OAuthConfig, TokenSet
from anthropic_auth.transport.async_transport import AsyncHttpxTransport
from anthropic_auth.transport.base import AsyncTransport

logger = logging.getLogger(__name__)


class AsyncOAuthClient(BaseOAuthClient):
    """Asynchronous OAuth 2.0 + PKCE client for Anthropic authentication.

    No flow state is shared between calls, so any number of flows may be
    exchanged concurrently. If an ``await`` is cancelled no token set is
    produced.

    Args:
        config: Client configuration. Defaults to :class:`OAuthConfig()`.
        transport: Transport to send requests through. When omitted an
            :class:`~anthropic_auth.transport.AsyncHttpxTransport` is created
            and closed by :meth:`aclose`.
        clock: Returns the current Unix time.

    Example::

        async with AsyncOAuthClient() as client:
            flow = client.start_flow(OAuthMode.CONSOLE)
            tokens = await client.exchange_code(response, flow.state, flow.verifier)
            api_key = await client.create_api_key(tokens.access_token)
    """

    def __init__(
        self,
        config: Optional[OAuthConfig] = None,
        transport: Optional[AsyncTransport] = None,
        clock: Clock = time.time,
    ) -> None:
        super().__init__(config, clock)
        self._owns_transport = transport is None
        self._transport = transport if transport is not None else AsyncHttpxTransport()

    async def __aenter__(self) -> AsyncOAuthClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self._transport.aclose()

    async def exchange_code(
        self,
        raw_response: str,
        expected_state: Optional[str],
        verifier: str,
        *,
        allow_missing_state: bool = False,
    ) -> TokenSet:
        """Exchange an authorization response for a token set.

        Behaves identically to
        :meth:`~anthropic_auth.client.sync_client.OAuthClient.exchange_code`
        but is non-blocking.
        """
        params = build_exchange_request(
            raw_response, expected_state, verifier, self._config, allow_missing_state
        )
        logger.debug("Exchanging authorization code at %s", self._config.endpoints.token_url)
        issued_at = self._clock()
        response = await self._transport.post_form(self._config.endpoints.token_url, params)
        return parse_token_response(response, issued_at)

    async def refresh_token(self, refresh_token: str) -> TokenSet:
        """Mint a new token set from *refresh_token* without blocking."""
        params = build_refresh_request(refresh_token, self._config)
        logger.debug("Refreshing access token at %s", self._config.endpoints.token_url)
        issued_at = self._clock()
        response = await self._transport.post_form(self._config.endpoints.token_url, params)
        return parse_token_response(response, issued_at, fallback_refresh_token=refresh_token)

    async def create_api_key(self, access_token: str) -> str:
        """Create an API key with a Console-mode access token without blocking."""
        headers = build_api_key_headers(access_token)
        logger.debug("Creating API key at %s", self._config.endpoints.api_key_url)
        response = await self._transport.post_json(
            self._config.endpoints.api_key_url, {}, headers
        )
        return parse_api_key_response(response)
