"""Protocol core shared by :class:`OAuthClient` and :class:`AsyncOAuthClient`.

Everything that decides *what* goes over the wire and *what* a response
means lives here, as plain functions with no I/O. The two clients differ
only in how they move a request through their transport, so the
security-relevant checks (state binding, status mapping, token validation)
exist exactly once.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from pydantic import ValidationError

from anthropic_auth.authorize import (
    build_authorization_url,
    parse_authorization_response,
    validate_state,
)
from anthropic_auth.exceptions import (
    InvalidProviderResponseError,
    InvalidUsageError,
    ProviderError,
    UnauthorizedError,
)
from anthropic_auth.models import (
    MAX_TOKEN_LIFETIME,
    ApiKeyResponse,
    OAuthConfig,
    OAuthFlow,
    OAuthMode,
    TokenResponse,
    TokenSet,
)
from anthropic_auth.pkce import generate_pkce
from anthropic_auth.transport.base import HTTPResponse

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class BaseOAuthClient:
    """Configuration and the I/O-free operations common to both clients.

    Args:
        config: Client configuration. Defaults to :class:`OAuthConfig()`.
        clock: Returns the current Unix time; used to stamp ``expires_at``.
    """

    def __init__(
        self,
        config: Optional[OAuthConfig] = None,
        clock: Clock = time.time,
    ) -> None:
        self._config = config if config is not None else OAuthConfig()
        self._clock = clock

    @property
    def config(self) -> OAuthConfig:
        return self._config

    def start_flow(self, mode: OAuthMode) -> OAuthFlow:
        """Begin an authorization flow with fresh PKCE material and state.

        Synchronous in both clients because it performs no network access.

        Args:
            mode: ``OAuthMode.MAX`` for a subscription, ``OAuthMode.CONSOLE``
                for API key creation.

        Returns:
            An :class:`~anthropic_auth.models.OAuthFlow` holding the URL to
            visit plus the state and verifier needed by :meth:`exchange_code`.

        Raises:
            RandomSourceUnavailableError: If secure randomness is unavailable.
            InvalidConfigError: If the configured URLs are malformed.
        """
        mode = OAuthMode(mode)
        material = generate_pkce()
        url = build_authorization_url(mode, material.challenge, material.state, self._config)
        logger.debug("Started %s flow", mode.value)
        return OAuthFlow(
            authorization_url=url,
            state=material.state,
            verifier=material.verifier,
            mode=mode,
        )


# --- Request builders ---


def build_exchange_request(
    raw_response: str,
    expected_state: Optional[str],
    verifier: str,
    config: OAuthConfig,
    allow_missing_state: bool = False,
) -> dict[str, str]:
    """Parse and validate an authorization response into token request form data.

    Runs every check that must pass before any network call is issued.

    Raises:
        MalformedResponseError: If *raw_response* has no code.
        StateMismatchError: If the embedded state does not match.
        InvalidUsageError: If *verifier* is empty.
    """
    response = parse_authorization_response(raw_response)
    state = validate_state(response, expected_state, allow_missing_state)
    if not verifier:
        raise InvalidUsageError("PKCE verifier is empty")

    return {
        "grant_type": "authorization_code",
        "code": response.code,
        "state": state,
        "client_id": config.client_id,
        "redirect_uri": config.redirect_uri,
        "code_verifier": verifier,
    }


def build_refresh_request(refresh_token: str, config: OAuthConfig) -> dict[str, str]:
    """Return refresh grant form data.

    Raises:
        InvalidUsageError: If *refresh_token* is empty.
    """
    if not refresh_token:
        raise InvalidUsageError("Refresh token is empty")
    return {
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
        "client_id": config.client_id,
    }


def build_api_key_headers(access_token: str) -> dict[str, str]:
    """Return the bearer headers for an API key creation request.

    Raises:
        InvalidUsageError: If *access_token* is empty.
    """
    if not access_token:
        raise InvalidUsageError("Access token is empty")
    return {"Authorization": f"Bearer {access_token}"}


# --- Response interpreters ---


def raise_for_status(response: HTTPResponse, bearer: bool = False) -> None:
    """Raise the error matching a non-2xx provider response.

    Args:
        response: The provider's response.
        bearer: The request was authenticated with a bearer token, so a 401
            is reported as :class:`UnauthorizedError`.
    """
    if response.is_success:
        return
    if bearer and response.status == 401:
        raise UnauthorizedError(response.status, response.body)
    raise ProviderError(response.status, response.body)


def _json_object(response: HTTPResponse) -> dict:
    try:
        payload = response.json()
    except ValueError:
        raise InvalidProviderResponseError(
            response.status, response.body, "Provider returned a non-JSON body"
        ) from None
    if not isinstance(payload, dict):
        raise InvalidProviderResponseError(
            response.status, response.body, "Provider returned a non-object JSON body"
        )
    return payload


def parse_token_response(
    response: HTTPResponse,
    issued_at: float,
    fallback_refresh_token: Optional[str] = None,
) -> TokenSet:
    """Turn a token endpoint response into a :class:`TokenSet`.

    Args:
        response: The token endpoint's response.
        issued_at: Unix time at which the request was issued; ``expires_at``
            is this plus ``expires_in``.
        fallback_refresh_token: Refresh token to keep when the provider does
            not rotate it.

    Raises:
        ProviderError: On a non-2xx status.
        InvalidProviderResponseError: On a success body that does not hold
            a usable token set.
    """
    raise_for_status(response)
    payload = _json_object(response)
    try:
        token_response = TokenResponse.model_validate(payload)
    except ValidationError as exc:
        raise InvalidProviderResponseError(
            response.status, response.body, f"Invalid token response: {exc.errors()[0]['msg']}"
        ) from None

    if not token_response.access_token:
        raise InvalidProviderResponseError(
            response.status, response.body, "Invalid token response: access_token is empty"
        )
    expires_in = token_response.expires_in
    if expires_in is not None and not 0 <= expires_in <= MAX_TOKEN_LIFETIME:
        raise InvalidProviderResponseError(
            response.status, response.body, f"Invalid token response: expires_in={expires_in}"
        )

    tokens = TokenSet.from_token_response(token_response, issued_at, fallback_refresh_token)
    if not tokens.refresh_token:
        raise InvalidProviderResponseError(
            response.status, response.body, "Invalid token response: refresh_token is missing"
        )
    return tokens


def parse_api_key_response(response: HTTPResponse) -> str:
    """Extract the created key from an API key creation response.

    Raises:
        UnauthorizedError: On HTTP 401.
        ProviderError: On any other non-2xx status.
        InvalidProviderResponseError: If ``raw_key`` is missing or empty.
    """
    raise_for_status(response, bearer=True)
    payload = _json_object(response)
    try:
        key_response = ApiKeyResponse.model_validate(payload)
    except ValidationError:
        raise InvalidProviderResponseError(
            response.status, response.body, "API key response missing 'raw_key' field"
        ) from None
    if not key_response.raw_key:
        raise InvalidProviderResponseError(
            response.status, response.body, "Received empty API key from server"
        )
    return key_response.raw_key
