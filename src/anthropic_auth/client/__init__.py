"""OAuth flow engine.

Provides blocking and non-blocking clients that share one protocol core
(:mod:`anthropic_auth.client.shared`) and differ only in their transport.

Classes:
    :class:`OAuthClient` -- blocking client over a
    :class:`~anthropic_auth.transport.Transport`.
    :class:`AsyncOAuthClient` -- non-blocking client over an
    :class:`~anthropic_auth.transport.AsyncTransport`.

Example::

    from anthropic_auth.client import OAuthClient

    with OAuthClient() as client:
        flow = client.start_flow(OAuthMode.MAX)
"""

from anthropic_auth.client.async_client import AsyncOAuthClient
from anthropic_auth.client.sync_client import OAuthClient

__all__ = ["OAuthClient", "AsyncOAuthClient"]
