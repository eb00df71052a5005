"""Authorization URL construction and authorization response parsing.

These are the two pure, I/O-free ends of the browser leg of the flow:
:func:`build_authorization_url` produces the URL the user visits, and
:func:`parse_authorization_response` decodes what the provider hands back
(``code#state`` pasted by the user, or assembled by the callback listener).
"""

from __future__ import annotations

import hmac
from typing import Optional
from urllib.parse import urlencode

from anthropic_auth.exceptions import MalformedResponseError, StateMismatchError
from anthropic_auth.models import AuthorizationResponse, OAuthConfig, OAuthMode, check_http_url
from anthropic_auth.pkce import CHALLENGE_METHOD

STATE_DELIMITER = "#"


def build_authorization_url(
    mode: OAuthMode,
    challenge: str,
    state: str,
    config: OAuthConfig,
) -> str:
    """Compose the provider authorization URL for *mode*.

    Only the base endpoint depends on *mode*; every query parameter is
    identical for identical PKCE input.

    Args:
        mode: Selects the ``claude.ai`` or ``console.anthropic.com`` endpoint.
        challenge: S256 code challenge from :func:`~anthropic_auth.pkce.generate_pkce`.
        state: CSRF state token bound to this flow.
        config: Client configuration providing client id, redirect URI,
            scope and endpoints.

    Returns:
        The fully composed URL.

    Raises:
        InvalidConfigError: If the endpoint or redirect URI is not an
            absolute http(s) URL.
    """
    mode = OAuthMode(mode)
    base = check_http_url(config.endpoints.authorize_url(mode), f"authorize_{mode.value}")
    check_http_url(config.redirect_uri, "redirect_uri")

    params = {
        "code": "true",
        "client_id": config.client_id,
        "response_type": "code",
        "redirect_uri": config.redirect_uri,
        "scope": config.scope,
        "code_challenge": challenge,
        "code_challenge_method": CHALLENGE_METHOD,
        "state": state,
    }
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{urlencode(params)}"


def parse_authorization_response(raw: str) -> AuthorizationResponse:
    """Split a raw ``code#state`` (or bare ``code``) authorization response.

    Surrounding whitespace from copy/paste is stripped. The string is split
    on the first ``#`` only; both segments are returned verbatim.

    Raises:
        MalformedResponseError: If the code segment is empty.
    """
    if raw is None:
        raise MalformedResponseError("Authorization response is empty")

    text = raw.strip()
    code, sep, state = text.partition(STATE_DELIMITER)
    if not code:
        raise MalformedResponseError(
            "Authorization response has no code (expected 'code#state' or 'code')"
        )
    return AuthorizationResponse(code=code, state=state if sep else None)


def validate_state(
    response: AuthorizationResponse,
    expected_state: Optional[str],
    allow_missing_state: bool = False,
) -> str:
    """Check the response's embedded state against the flow's state.

    Comparison is constant-time. A response without an embedded state
    fails closed unless the caller expects no state at all or explicitly
    opts in with *allow_missing_state*. An embedded state is never accepted
    without an expected state to compare it with.

    Returns:
        The state to send with the token exchange (may be empty).

    Raises:
        StateMismatchError: On mismatch, or a missing state that was required.
    """
    if response.state is None:
        if expected_state and not allow_missing_state:
            raise StateMismatchError(
                "Authorization response carries no state; expected the flow's "
                "state (paste the full 'code#state' value)"
            )
        return expected_state or ""

    if expected_state is None:
        raise StateMismatchError(
            "Authorization response carries a state but no expected state was "
            "given; pass the flow's state"
        )

    if not hmac.compare_digest(
        response.state.encode("utf-8"), expected_state.encode("utf-8")
    ):
        raise StateMismatchError("State mismatch - possible CSRF attack")
    return response.state
