"""Canonical Pydantic models shared across all anthropic-auth modules.

The models fall into three groups:

**Configuration** -- :class:`OAuthMode`, :class:`OAuthEndpoints` and
:class:`OAuthConfig`. Immutable once constructed; a client holds one config
for its whole life.

**Flow artifacts** -- :class:`PKCEMaterial`, :class:`OAuthFlow` and
:class:`AuthorizationResponse`. Produced by
:meth:`~anthropic_auth.client.OAuthClient.start_flow` and the response
parser, held by the caller until the code is exchanged.

**Credentials** -- :class:`TokenSet`, plus the provider payload shapes
:class:`TokenResponse` and :class:`ApiKeyResponse`.

Every model is frozen. Secrets are excluded from ``repr`` so that a token
set or flow accidentally logged does not leak its credentials.
"""

from __future__ import annotations

import enum
import time
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from anthropic_auth.exceptions import InvalidConfigError

DEFAULT_CLIENT_ID = "9d1c250a-e61b-44d9-88ed-5944d1962f5e"
"""OAuth client identifier registered for the Claude CLI."""

DEFAULT_REDIRECT_URI = "https://console.anthropic.com/oauth/code/callback"
"""Provider-hosted callback page that displays ``code#state`` for manual paste."""

DEFAULT_SCOPE = "org:create_api_key user:profile user:inference"

DEFAULT_EXPIRES_IN = 3600
"""Token lifetime in seconds assumed when the provider omits ``expires_in``."""

MAX_TOKEN_LIFETIME = 31_536_000
"""Upper bound (one year) on a plausible provider-reported lifetime."""


def localhost_redirect_uri(port: int) -> str:
    """Return the local callback URL for *port*."""
    return f"http://localhost:{port}/callback"


def check_http_url(value: str, field: str) -> str:
    """Return *value* if it is an absolute http(s) URL, else raise InvalidConfigError."""
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidConfigError(
            f"{field} must be an absolute http(s) URL, got {value!r}"
        )
    return value


# --- Configuration ---


class OAuthMode(str, enum.Enum):
    """The two supported authorization modes.

    ``MAX`` authorizes a Claude Pro/Max subscription through ``claude.ai``.
    ``CONSOLE`` authorizes through ``console.anthropic.com`` so that the
    resulting access token can mint API keys.
    """

    MAX = "max"
    CONSOLE = "console"

    SUBSCRIPTION = "max"
    API_KEY_CREATION = "console"


class _ConfigModel(BaseModel):
    """Base for configuration models: validation failures raise InvalidConfigError."""

    @model_validator(mode="wrap")
    @classmethod
    def _raise_config_error(cls, data: Any, handler: Any) -> Any:
        try:
            return handler(data)
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or cls.__name__}: {error['msg']}"
                for error in exc.errors()
            )
            raise InvalidConfigError(f"Invalid {cls.__name__}: {details}") from exc


class OAuthEndpoints(_ConfigModel):
    """Provider URLs used by the flow engine."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    authorize_max: str = "https://claude.ai/oauth/authorize"
    authorize_console: str = "https://console.anthropic.com/oauth/authorize"
    token_url: str = "https://console.anthropic.com/v1/oauth/token"
    api_key_url: str = "https://api.anthropic.com/api/oauth/claude_cli/create_api_key"

    @field_validator("authorize_max", "authorize_console", "token_url", "api_key_url")
    @classmethod
    def _validate_url(cls, value: str, info: ValidationInfo) -> str:
        return check_http_url(value, info.field_name)

    def authorize_url(self, mode: OAuthMode) -> str:
        """Return the authorization endpoint for *mode*."""
        if mode == OAuthMode.MAX:
            return self.authorize_max
        return self.authorize_console


class OAuthConfig(_ConfigModel):
    """Client configuration, immutable once a client is constructed.

    ``redirect_port`` is accepted as a constructor shortcut for a local
    callback listener and expands to ``http://localhost:<port>/callback``.
    It cannot be combined with an explicit ``redirect_uri``.

    Example::

        OAuthConfig(client_id="my-client", redirect_port=1455)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    client_id: str = DEFAULT_CLIENT_ID
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scope: str = DEFAULT_SCOPE
    endpoints: OAuthEndpoints = Field(default_factory=OAuthEndpoints)

    @model_validator(mode="before")
    @classmethod
    def _expand_redirect_port(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "redirect_port" not in data:
            return data
        data = dict(data)
        port = data.pop("redirect_port")
        if port is None:
            return data
        if data.get("redirect_uri") is not None:
            raise InvalidConfigError("Set either redirect_uri or redirect_port, not both")
        try:
            port = int(port)
        except (TypeError, ValueError):
            raise InvalidConfigError(f"redirect_port must be an integer, got {port!r}") from None
        if not 0 < port < 65536:
            raise InvalidConfigError(f"redirect_port out of range: {port}")
        data["redirect_uri"] = localhost_redirect_uri(port)
        return data

    @field_validator("client_id")
    @classmethod
    def _validate_client_id(cls, value: str) -> str:
        if not value.strip():
            raise InvalidConfigError("client_id must not be empty")
        return value

    @field_validator("redirect_uri")
    @classmethod
    def _validate_redirect_uri(cls, value: str) -> str:
        return check_http_url(value, "redirect_uri")

    @property
    def redirect_port(self) -> Optional[int]:
        """Port of a localhost redirect URI, or ``None`` for remote callbacks."""
        parsed = urlparse(self.redirect_uri)
        if parsed.hostname not in ("localhost", "127.0.0.1"):
            return None
        return parsed.port


# --- Flow artifacts ---


class PKCEMaterial(BaseModel):
    """A PKCE verifier, its S256 challenge, and a CSRF state token."""

    model_config = ConfigDict(frozen=True)

    verifier: str = Field(repr=False)
    challenge: str
    state: str


class OAuthFlow(BaseModel):
    """Everything the caller must hold between authorization and exchange.

    Discard the flow after :meth:`~anthropic_auth.client.OAuthClient.exchange_code`;
    a new authorization always needs a new flow.
    """

    model_config = ConfigDict(frozen=True)

    authorization_url: str
    state: str
    verifier: str = Field(repr=False)
    mode: OAuthMode


class AuthorizationResponse(BaseModel):
    """Parsed ``code#state`` authorization response."""

    model_config = ConfigDict(frozen=True)

    code: str
    state: Optional[str] = None


# --- Credentials ---


class TokenSet(BaseModel):
    """Issued OAuth credentials.

    Immutable: a refresh returns a new ``TokenSet``. Persisting it is the
    host application's job; ``model_dump_json()`` and
    ``TokenSet.model_validate_json()`` round-trip it.

    Attributes:
        access_token: Bearer credential for API calls.
        refresh_token: Credential used to mint new access tokens.
        expires_at: Unix timestamp (seconds) when ``access_token`` expires.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(repr=False)
    refresh_token: str = Field(repr=False)
    expires_at: int

    @classmethod
    def from_token_response(
        cls,
        response: TokenResponse,
        issued_at: float,
        fallback_refresh_token: Optional[str] = None,
    ) -> TokenSet:
        """Build a token set from a provider payload received at *issued_at*."""
        expires_in = response.expires_in if response.expires_in is not None else DEFAULT_EXPIRES_IN
        return cls(
            access_token=response.access_token,
            refresh_token=response.refresh_token or fallback_refresh_token or "",
            expires_at=int(issued_at) + expires_in,
        )

    def expires_in(self, now: Optional[float] = None) -> int:
        """Seconds until expiry, ``0`` when already expired."""
        if now is None:
            now = time.time()
        return max(0, self.expires_at - int(now))

    def is_expired(self, now: Optional[float] = None, leeway: float = 0.0) -> bool:
        """Return ``True`` when the access token is expired at *now*.

        Args:
            now: Unix timestamp to evaluate at. Defaults to the current time.
            leeway: Treat the token as expired this many seconds early.
                Hosts that check before use typically pass ``300``.
        """
        if now is None:
            now = time.time()
        return now + leeway >= self.expires_at


class TokenResponse(BaseModel):
    """Token endpoint success payload."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class ApiKeyResponse(BaseModel):
    """API key creation payload."""

    model_config = ConfigDict(extra="ignore")

    raw_key: str
