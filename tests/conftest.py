"""Shared test fixtures for anthropic-auth.

Provides recording fake transports, a fixed clock, canned provider
responses, and automatic reset of the global output state. These fixtures
are discovered by pytest and available to all test modules without
explicit imports.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

import pytest

from anthropic_auth.models import OAuthConfig
from anthropic_auth.output import reset_output
from anthropic_auth.transport.base import AsyncTransport, HTTPResponse, Transport

FIXED_NOW = 1_700_000_000.0


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fake transports
# ---------------------------------------------------------------------------


def json_response(data: Any, status: int = 200) -> HTTPResponse:
    """Build an :class:`HTTPResponse` carrying *data* as JSON."""
    return HTTPResponse(
        status=status,
        body=json.dumps(data),
        headers={"content-type": "application/json"},
    )


def token_payload(
    access_token: str = "at-1",
    refresh_token: Optional[str] = "rt-1",
    expires_in: Optional[int] = 3600,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"access_token": access_token, "token_type": "Bearer"}
    if refresh_token is not None:
        payload["refresh_token"] = refresh_token
    if expires_in is not None:
        payload["expires_in"] = expires_in
    return payload


class FakeTransport(Transport):
    """Blocking transport returning queued responses and recording calls."""

    def __init__(self, *responses: HTTPResponse | Exception) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def _next(self, kind: str, url: str, payload: Any, headers: Optional[Mapping[str, str]]) -> HTTPResponse:
        self.calls.append(
            {"kind": kind, "url": url, "payload": payload, "headers": dict(headers or {})}
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post_form(self, url, params, headers=None):
        return self._next("form", url, dict(params), headers)

    def post_json(self, url, body, headers=None):
        return self._next("json", url, body, headers)

    def close(self) -> None:
        self.closed = True


class FakeAsyncTransport(AsyncTransport):
    """Async mirror of :class:`FakeTransport`."""

    def __init__(self, *responses: HTTPResponse | Exception) -> None:
        self._sync = FakeTransport(*responses)
        self.closed = False

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self._sync.calls

    async def post_form(self, url, params, headers=None):
        return self._sync.post_form(url, params, headers)

    async def post_json(self, url, body, headers=None):
        return self._sync.post_json(url, body, headers)

    async def aclose(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> OAuthConfig:
    """Default configuration."""
    return OAuthConfig()


@pytest.fixture
def clock():
    """Clock frozen at :data:`FIXED_NOW`."""
    return lambda: FIXED_NOW


@pytest.fixture
def make_transport():
    """Factory for :class:`FakeTransport` instances."""
    return FakeTransport


@pytest.fixture
def make_async_transport():
    """Factory for :class:`FakeAsyncTransport` instances."""
    return FakeAsyncTransport


@pytest.fixture(name="json_response")
def _json_response_fixture():
    """The :func:`json_response` helper."""
    return json_response


@pytest.fixture(name="token_payload")
def _token_payload_fixture():
    """The :func:`token_payload` helper."""
    return token_payload
