"""Configuration resolution with environment variable overrides.

:class:`~anthropic_auth.models.OAuthConfig` can always be built directly.
:func:`load_config` is the convenience used by the CLI and by hosts that
want to honour the ``ANTHROPIC_AUTH_*`` environment variables.

Precedence (high to low):
    1. Explicit keyword overrides passed to :func:`load_config`
    2. Environment variables (see :data:`ENV_VARS`)
    3. Defaults declared on :class:`~anthropic_auth.models.OAuthConfig`

Overrides whose value is ``None`` are ignored so CLI options that were not
given fall through to the environment.
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from anthropic_auth.exceptions import InvalidConfigError
from anthropic_auth.models import OAuthConfig, OAuthEndpoints

ENV_VARS: dict[str, str] = {
    "client_id": "ANTHROPIC_AUTH_CLIENT_ID",
    "redirect_uri": "ANTHROPIC_AUTH_REDIRECT_URI",
    "redirect_port": "ANTHROPIC_AUTH_REDIRECT_PORT",
    "scope": "ANTHROPIC_AUTH_SCOPE",
    "authorize_max": "ANTHROPIC_AUTH_AUTHORIZE_URL_MAX",
    "authorize_console": "ANTHROPIC_AUTH_AUTHORIZE_URL_CONSOLE",
    "token_url": "ANTHROPIC_AUTH_TOKEN_URL",
    "api_key_url": "ANTHROPIC_AUTH_API_KEY_URL",
}
"""Mapping of configuration keys to the environment variables that set them."""

_ENDPOINT_KEYS = ("authorize_max", "authorize_console", "token_url", "api_key_url")


def _from_env(environ: Mapping[str, str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for key, var in ENV_VARS.items():
        value = environ.get(var, "")
        if value:
            values[key] = value
    return values


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> OAuthConfig:
    """Build an :class:`OAuthConfig` from overrides, environment, and defaults.

    Args:
        environ: Environment mapping to read. Defaults to :data:`os.environ`.
        **overrides: Any key of :data:`ENV_VARS`. ``None`` values are skipped.

    Returns:
        The resolved, immutable configuration.

    Raises:
        InvalidConfigError: For unknown keys or values that fail validation.

    Example::

        config = load_config(redirect_port=1455)
    """
    unknown = set(overrides) - set(ENV_VARS)
    if unknown:
        raise InvalidConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    values = _from_env(os.environ if environ is None else environ)

    explicit = {key: value for key, value in overrides.items() if value is not None}
    # An explicit redirect choice replaces both redirect forms from the environment
    if "redirect_uri" in explicit or "redirect_port" in explicit:
        values.pop("redirect_uri", None)
        values.pop("redirect_port", None)
    values.update(explicit)

    endpoint_values = {key: values.pop(key) for key in _ENDPOINT_KEYS if key in values}
    if endpoint_values:
        values["endpoints"] = OAuthEndpoints(**endpoint_values)
    return OAuthConfig(**values)
