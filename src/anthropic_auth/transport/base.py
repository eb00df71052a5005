"""Abstract transport interfaces shared by the blocking and async clients.

The flow engine never talks to :mod:`httpx` directly. It hands fully built
requests to a :class:`Transport` (blocking) or :class:`AsyncTransport`
(suspending) and interprets the :class:`HTTPResponse` it gets back. Swapping
the transport is how tests feed canned provider responses and how hosts
plug in their own HTTP stack, proxies, or timeouts.

To implement a transport, subclass the matching ABC and implement
:meth:`post_form` and :meth:`post_json`. Implementations must raise
:class:`~anthropic_auth.exceptions.TransportError` for network failures and
return non-2xx responses normally; status interpretation belongs to the
flow engine.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class HTTPResponse:
    """Status, body text and headers of a completed HTTP exchange."""

    status: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        """Whether the status is 2xx."""
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        return json.loads(self.body)


class Transport(ABC):
    """Blocking transport: each call returns once the round trip completes."""

    @abstractmethod
    def post_form(
        self,
        url: str,
        params: Mapping[str, str],
        headers: Optional[Mapping[str, str]] = None,
    ) -> HTTPResponse:
        """POST *params* as ``application/x-www-form-urlencoded``."""
        ...

    @abstractmethod
    def post_json(
        self,
        url: str,
        body: Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HTTPResponse:
        """POST *body* serialised as JSON."""
        ...

    def close(self) -> None:
        """Release resources held by the transport."""


class AsyncTransport(ABC):
    """Suspending transport: each call is a coroutine awaited by the caller."""

    @abstractmethod
    async def post_form(
        self,
        url: str,
        params: Mapping[str, str],
        headers: Optional[Mapping[str, str]] = None,
    ) -> HTTPResponse:
        """POST *params* as ``application/x-www-form-urlencoded``."""
        ...

    @abstractmethod
    async def post_json(
        self,
        url: str,
        body: Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HTTPResponse:
        """POST *body* serialised as JSON."""
        ...

    async def aclose(self) -> None:
        """Release resources held by the transport."""
