"""HTTP transports for the flow engine.

Classes:
    :class:`Transport` / :class:`AsyncTransport` -- the capability
    interfaces the clients are written against.
    :class:`HttpxTransport` -- blocking implementation over :class:`httpx.Client`.
    :class:`AsyncHttpxTransport` -- suspending implementation over
    :class:`httpx.AsyncClient`.
    :class:`HTTPResponse` -- the status/body/headers triple both return.
"""

from anthropic_auth.transport.async_transport import AsyncHttpxTransport
from anthropic_auth.transport.base import AsyncTransport, HTTPResponse, Transport
from anthropic_auth.transport.sync_transport import HttpxTransport

__all__ = [
    "AsyncHttpxTransport",
    "AsyncTransport",
    "HTTPResponse",
    "HttpxTransport",
    "Transport",
]
