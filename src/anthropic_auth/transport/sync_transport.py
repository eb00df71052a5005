"""Blocking transport backed by :class:`httpx.Client`.

See Also:
    :class:`~anthropic_auth.transport.async_transport.AsyncHttpxTransport`
    for the non-blocking equivalent.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from anthropic_auth.exceptions import TransportError
from anthropic_auth.transport.base import HTTPResponse, Transport

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_HEADERS = {"Accept": "application/json"}


def to_http_response(response: httpx.Response) -> HTTPResponse:
    """Copy the parts of an :class:`httpx.Response` the flow engine reads."""
    return HTTPResponse(
        status=response.status_code,
        body=response.text,
        headers=dict(response.headers),
    )


class HttpxTransport(Transport):
    """Blocking HTTP transport.

    Performs no retries; a failed round trip surfaces immediately as
    :class:`~anthropic_auth.exceptions.TransportError`. Timeouts are a
    property of the transport, not of the flow engine.

    Args:
        client: Optional pre-configured :class:`httpx.Client`. A client
            passed in is owned by the caller and not closed by :meth:`close`.
        timeout: Request timeout in seconds for a client built internally.
        verify_ssl: Verify TLS certificates for a client built internally.

    Example::

        with HttpxTransport(timeout=10) as transport:
            response = transport.post_form(url, {"grant_type": "refresh_token"})
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout, verify=verify_ssl)

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def post_form(
        self,
        url: str,
        params: Mapping[str, str],
        headers: Optional[Mapping[str, str]] = None,
    ) -> HTTPResponse:
        return self._send(url, headers, data=dict(params))

    def post_json(
        self,
        url: str,
        body: Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HTTPResponse:
        return self._send(url, headers, json=body)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _send(self, url: str, headers: Optional[Mapping[str, str]], **kwargs: Any) -> HTTPResponse:
        merged = {**DEFAULT_HEADERS, **(headers or {})}
        try:
            response = self._client.post(url, headers=merged, **kwargs)
        # InvalidURL and header encoding failures are not httpx.HTTPError subclasses
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise TransportError(f"POST {url} failed: {exc}") from exc
        logger.debug("POST %s -> %s", url, response.status_code)
        return to_http_response(response)
