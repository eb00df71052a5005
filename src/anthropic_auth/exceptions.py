"""Exception hierarchy for anthropic-auth.

All exceptions inherit from :class:`AnthropicAuthError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`anthropic_auth.exit_codes`. Library callers catch the specific
subclasses they can act on; the CLI entry point in
:func:`anthropic_auth.app.main` catches the base class and exits with the
appropriate code.

Subclass hierarchy::

    AnthropicAuthError                    (exit 1)
    +-- RandomSourceUnavailableError      (exit 1)
    +-- InvalidConfigError                (exit 2)
    +-- InvalidUsageError                 (exit 2)
    +-- MalformedResponseError            (exit 2)
    +-- StateMismatchError                (exit 3)
    +-- TransportError                    (exit 6)
    +-- ProviderError                     (exit 5)
    |   +-- UnauthorizedError             (exit 3)
    |   +-- InvalidProviderResponseError  (exit 5)
    +-- BrowserLaunchError                (exit 1)
    +-- CallbackServerError               (exit 7)
"""

from __future__ import annotations

from typing import Optional

from anthropic_auth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CALLBACK_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PROVIDER_ERROR,
)


class AnthropicAuthError(Exception):
    """Base exception for all anthropic-auth errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class RandomSourceUnavailableError(AnthropicAuthError):
    """Raised when the operating system's secure random source cannot be used.

    This is an environment failure. Callers should not retry.
    """


class InvalidConfigError(AnthropicAuthError):
    """Raised for malformed configuration (bad redirect URI, endpoint, or port)."""

    exit_code = EXIT_INVALID_USAGE


class InvalidUsageError(AnthropicAuthError):
    """Raised when a required argument is empty or otherwise unusable."""

    exit_code = EXIT_INVALID_USAGE


class MalformedResponseError(AnthropicAuthError):
    """Raised when the authorization response string cannot be parsed."""

    exit_code = EXIT_INVALID_USAGE


class StateMismatchError(AnthropicAuthError):
    """Raised when the returned state does not match the flow's state.

    Signals a possible CSRF attack or a response pasted into the wrong
    flow. Never retried automatically.
    """

    exit_code = EXIT_AUTH_FAILURE


class TransportError(AnthropicAuthError):
    """Raised on network-level failures (timeout, DNS, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class ProviderError(AnthropicAuthError):
    """Raised when the OAuth provider rejects a request.

    Args:
        status: HTTP status code returned by the provider.
        body: Raw response body, kept verbatim for diagnosis.
        message: Optional message override. Defaults to ``HTTP <status> - <body>``
            followed by a hint when one applies.
    """

    exit_code = EXIT_PROVIDER_ERROR

    def __init__(self, status: int, body: str, message: Optional[str] = None):
        self.status = status
        self.body = body
        self.hint = provider_hint(status, body)
        if message is None:
            message = f"HTTP {status} - {body}" if body else f"HTTP {status}"
            if self.hint:
                message = f"{message}\nHint: {self.hint}"
        super().__init__(message)


class UnauthorizedError(ProviderError):
    """Raised when the provider rejects the bearer token (HTTP 401).

    Distinguished from :class:`ProviderError` so callers can refresh the
    token set and retry. The library itself never retries.
    """

    exit_code = EXIT_AUTH_FAILURE


class InvalidProviderResponseError(ProviderError):
    """Raised when a successful response does not carry the expected fields."""


class BrowserLaunchError(AnthropicAuthError):
    """Raised when the system browser cannot be launched."""


class CallbackServerError(AnthropicAuthError):
    """Raised when the local callback listener fails or receives an OAuth error."""

    exit_code = EXIT_CALLBACK_ERROR


def provider_hint(status: int, body: str) -> Optional[str]:
    """Return a troubleshooting hint for a provider error, if one applies."""
    if status == 400:
        if "verifier" in body:
            return (
                "The PKCE verifier doesn't match. Make sure you're using the "
                "verifier from the same flow."
            )
        if "code" in body:
            return (
                "The authorization code may be invalid, expired, or already "
                "used. Please try the flow again."
            )
        if "state" in body:
            return "The state parameter is invalid. This could indicate a security issue."
        return "Bad request - check that all parameters are correct."
    if status == 401:
        return "Authentication failed - the access token may be invalid or expired."
    if status == 403:
        return "Access forbidden - you may not have permission to perform this action."
    if status == 404:
        return "Endpoint not found - the API URL may have changed."
    if status == 429:
        return "Rate limit exceeded - please wait before retrying."
    if 500 <= status <= 599:
        return "Server error on the provider side. Please try again later."
    return None
