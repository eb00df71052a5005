"""Numeric process exit codes used by the ``anthropic-auth`` CLI.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~anthropic_auth.exceptions.AnthropicAuthError`
subclass. Shell wrappers can inspect the exit code to tell a rejected
credential from a network outage without parsing stderr.

Example::

    $ anthropic-auth refresh "$REFRESH_TOKEN"
    $ echo $?
    5   # EXIT_PROVIDER_ERROR -- the token endpoint rejected the request
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments, configuration, or authorization response input."""

EXIT_AUTH_FAILURE = 3
"""CSRF state validation failed or the bearer token was rejected."""

EXIT_PROVIDER_ERROR = 5
"""The OAuth provider rejected the request or returned an unusable body."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CALLBACK_ERROR = 7
"""The local callback listener failed or did not receive a usable redirect."""
