"""anthropic-auth -- OAuth 2.0 + PKCE client for Anthropic authentication.

This package runs the Authorization Code + PKCE flow against Anthropic in
two modes: ``max`` (a Claude Pro/Max subscription) and ``console`` (a
Console login whose access token can mint an API key). It exchanges the
resulting code for tokens, refreshes them, and creates API keys, through
either a blocking or an async client with identical semantics.

Typical use::

    from anthropic_auth import OAuthClient, OAuthMode

    with OAuthClient() as client:
        flow = client.start_flow(OAuthMode.MAX)
        print("Visit:", flow.authorization_url)
        tokens = client.exchange_code(input("Paste code#state: "), flow.state, flow.verifier)

Persisting the returned :class:`TokenSet` is left to the caller.

Modules:
    client: Blocking and async OAuth clients.
    transport: Transport interfaces and the httpx implementations.
    models: Pydantic models shared across the entire package.
    pkce: Verifier, challenge and state generation.
    authorize: Authorization URL building and response parsing.
    config: Environment-aware configuration loading.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from anthropic_auth.browser import open_browser
from anthropic_auth.callback_server import run_callback_server
from anthropic_auth.client import AsyncOAuthClient, OAuthClient
from anthropic_auth.config import load_config
from anthropic_auth.exceptions import (
    AnthropicAuthError,
    BrowserLaunchError,
    CallbackServerError,
    InvalidConfigError,
    InvalidProviderResponseError,
    InvalidUsageError,
    MalformedResponseError,
    ProviderError,
    RandomSourceUnavailableError,
    StateMismatchError,
    TransportError,
    UnauthorizedError,
)
from anthropic_auth.models import (
    OAuthConfig,
    OAuthEndpoints,
    OAuthFlow,
    OAuthMode,
    TokenSet,
)
from anthropic_auth.pkce import generate_pkce

__all__ = [
    "AnthropicAuthError",
    "AsyncOAuthClient",
    "BrowserLaunchError",
    "CallbackServerError",
    "InvalidConfigError",
    "InvalidProviderResponseError",
    "InvalidUsageError",
    "MalformedResponseError",
    "OAuthClient",
    "OAuthConfig",
    "OAuthEndpoints",
    "OAuthFlow",
    "OAuthMode",
    "ProviderError",
    "RandomSourceUnavailableError",
    "StateMismatchError",
    "TokenSet",
    "TransportError",
    "UnauthorizedError",
    "generate_pkce",
    "load_config",
    "open_browser",
    "run_callback_server",
]
