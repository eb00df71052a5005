"""Blocking OAuth client.

This module provides :class:`OAuthClient`, for CLI tools and applications
without an event loop. Every network operation runs on the calling thread
and returns only when the round trip completes or fails.

See Also:
    :class:`~anthropic_auth.client.async_client.AsyncOAuthClient` for the
    equivalent non-blocking implementation.
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
from anthropic_auth.transport.base import Transport
from anthropic_auth.transport.sync_transport import HttpxTransport

logger = logging.getLogger(__name__)


class OAuthClient(BaseOAuthClient):
    """Blocking OAuth 2.0 + PKCE client for Anthropic authentication.

    The client holds only immutable configuration and its transport, so
    flows are independent: start as many as needed and exchange each with
    its own state and verifier. Sharing one instance across threads is safe
    as long as the transport is.

    Args:
        config: Client configuration. Defaults to :class:`OAuthConfig()`.
        transport: Transport to send requests through. When omitted an
            :class:`~anthropic_auth.transport.HttpxTransport` is created and
            closed by :meth:`close`.
        clock: Returns the current Unix time.

    Example::

        with OAuthClient() as client:
            flow = client.start_flow(OAuthMode.MAX)
            print("Visit:", flow.authorization_url)
            tokens = client.exchange_code(input("Paste code#state: "), flow.state, flow.verifier)
    """

    def __init__(
        self,
        config: Optional[OAuthConfig] = None,
        transport: Optional[Transport] = None,
        clock: Clock = time.time,
    ) -> None:
        super().__init__(config, clock)
        self._owns_transport = transport is None
        self._transport = transport if transport is not None else HttpxTransport()

    def __enter__(self) -> OAuthClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            self._transport.close()

    def exchange_code(
        self,
        raw_response: str,
        expected_state: Optional[str],
        verifier: str,
        *,
        allow_missing_state: bool = False,
    ) -> TokenSet:
        """Exchange an authorization response for a token set.

        The response's embedded state is checked against *expected_state*
        before anything is sent. A response without an embedded state is
        rejected unless *allow_missing_state* is set.

        Args:
            raw_response: ``code#state`` as shown by the provider, or a bare code.
            expected_state: ``flow.state`` from :meth:`start_flow`.
            verifier: ``flow.verifier`` from :meth:`start_flow`.
            allow_missing_state: Accept a bare code without state binding.

        Returns:
            A new :class:`~anthropic_auth.models.TokenSet`.

        Raises:
            MalformedResponseError: If *raw_response* carries no code.
            StateMismatchError: If the state check fails.
            TransportError: On network failure.
            ProviderError: If the provider rejects the exchange.
        """
        params = build_exchange_request(
            raw_response, expected_state, verifier, self._config, allow_missing_state
        )
        logger.debug("Exchanging authorization code at %s", self._config.endpoints.token_url)
        issued_at = self._clock()
        response = self._transport.post_form(self._config.endpoints.token_url, params)
        return parse_token_response(response, issued_at)

    def refresh_token(self, refresh_token: str) -> TokenSet:
        """Mint a new token set from *refresh_token*.

        The returned token set replaces the caller's stored copy; nothing
        passed in is modified.

        Raises:
            InvalidUsageError: If *refresh_token* is empty.
            TransportError: On network failure.
            ProviderError: If the provider rejects the refresh.
        """
        params = build_refresh_request(refresh_token, self._config)
        logger.debug("Refreshing access token at %s", self._config.endpoints.token_url)
        issued_at = self._clock()
        response = self._transport.post_form(self._config.endpoints.token_url, params)
        return parse_token_response(response, issued_at, fallback_refresh_token=refresh_token)

    def create_api_key(self, access_token: str) -> str:
        """Create an API key with a Console-mode access token.

        Raises:
            InvalidUsageError: If *access_token* is empty.
            UnauthorizedError: If the provider rejects the bearer token.
            TransportError: On network failure.
            ProviderError: On any other rejection.
        """
        headers = build_api_key_headers(access_token)
        logger.debug("Creating API key at %s", self._config.endpoints.api_key_url)
        response = self._transport.post_json(self._config.endpoints.api_key_url, {}, headers)
        return parse_api_key_response(response)
