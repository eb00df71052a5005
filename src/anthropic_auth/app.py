"""Typer application and CLI entry point for anthropic-auth.

The CLI is a thin host around :class:`~anthropic_auth.client.OAuthClient`:
it opens the browser, collects the authorization response (pasted, or
captured by the local callback listener) and prints the resulting token
set or API key to stdout. It never writes credentials to disk; redirect
stdout to persist them.

Typical use::

    anthropic-auth login --mode max > tokens.json
    anthropic-auth refresh "$(jq -r .refresh_token tokens.json)"
    anthropic-auth login --mode console --create-key
"""

from __future__ import annotations

import logging
import signal
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Optional
from urllib.parse import urlparse

import typer

from anthropic_auth import __version__
from anthropic_auth.browser import open_browser
from anthropic_auth.callback_server import DEFAULT_PATH, DEFAULT_TIMEOUT, run_callback_server
from anthropic_auth.client import OAuthClient
from anthropic_auth.config import load_config
from anthropic_auth.exceptions import AnthropicAuthError, BrowserLaunchError
from anthropic_auth.exit_codes import EXIT_GENERIC_FAILURE
from anthropic_auth.models import OAuthConfig, OAuthMode, TokenSet
from anthropic_auth.output import (
    OutputFormat,
    OutputManager,
    error,
    get_output,
    info,
    print_result,
    set_output,
    success,
    warning,
)

DEFAULT_CALLBACK_PORT = 1455

app = typer.Typer(
    name="anthropic-auth",
    help="Authenticate with Anthropic via OAuth 2.0 + PKCE.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


class _OutputLogHandler(logging.Handler):
    """Route library log records to the CLI's ``--verbose`` debug stream."""

    def emit(self, record: logging.LogRecord) -> None:
        get_output().debug(self.format(record))


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("anthropic_auth")
    for handler in list(logger.handlers):
        if isinstance(handler, _OutputLogHandler):
            logger.removeHandler(handler)
    if verbose:
        logger.addHandler(_OutputLogHandler())
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.NOTSET)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"anthropic-auth {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="Override the OAuth client id."
    ),
    redirect_port: Optional[int] = typer.Option(
        None, "--redirect-port", help="Use http://localhost:PORT/callback as redirect URI."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Initialise output and stash config overrides for sub-commands."""
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["client_id"] = client_id
    ctx.obj["redirect_port"] = redirect_port


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Report library errors and exit with their mapped exit code."""
    try:
        yield
    except AnthropicAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _resolve_config(ctx: typer.Context, **overrides: Any) -> OAuthConfig:
    obj = ctx.obj or {}
    values = {"client_id": obj.get("client_id"), "redirect_port": obj.get("redirect_port")}
    values.update(overrides)
    return load_config(**values)


def _make_client(config: OAuthConfig) -> OAuthClient:
    return OAuthClient(config)


def _token_payload(tokens: TokenSet) -> dict[str, Any]:
    return tokens.model_dump(mode="json")


@app.command("url")
def url_command(
    ctx: typer.Context,
    mode: OAuthMode = typer.Option(OAuthMode.MAX, "--mode", "-m", help="OAuth mode."),
) -> None:
    """Print a fresh authorization URL with its state and verifier.

    Keep the state and verifier; ``exchange`` needs both.
    """
    with _handle_errors():
        config = _resolve_config(ctx)
        with _make_client(config) as client:
            flow = client.start_flow(mode)
    print_result(
        {
            "authorization_url": flow.authorization_url,
            "state": flow.state,
            "verifier": flow.verifier,
            "mode": flow.mode.value,
        }
    )


@app.command("login")
def login_command(
    ctx: typer.Context,
    mode: OAuthMode = typer.Option(OAuthMode.MAX, "--mode", "-m", help="OAuth mode."),
    browser: bool = typer.Option(True, "--browser/--no-browser", help="Open the system browser."),
    callback: bool = typer.Option(
        False,
        "--callback",
        help="Capture the redirect with a local listener instead of pasting it.",
    ),
    create_key: bool = typer.Option(
        False, "--create-key", help="Create an API key with the new access token."
    ),
    timeout: float = typer.Option(
        DEFAULT_TIMEOUT, "--timeout", help="Seconds to wait for the callback."
    ),
) -> None:
    """Run the full authorization flow and print the result.

    Prints the token set as JSON, or ``{"api_key": ...}`` with ``--create-key``.
    """
    with _handle_errors():
        config = _resolve_config(ctx)
        if callback and config.redirect_port is None:
            config = _resolve_config(ctx, redirect_port=DEFAULT_CALLBACK_PORT)
        if create_key and mode != OAuthMode.CONSOLE:
            warning("API key creation normally requires --mode console.")

        with _make_client(config) as client:
            flow = client.start_flow(mode)

            if callback:
                port = config.redirect_port or DEFAULT_CALLBACK_PORT
                path = urlparse(config.redirect_uri).path or DEFAULT_PATH
                info(f"Waiting for the authorization callback on port {port}...")
                info(f"If the browser does not open, visit:\n{flow.authorization_url}")
                raw = run_callback_server(
                    port,
                    expected_state=flow.state,
                    path=path,
                    timeout=timeout,
                    open_url=flow.authorization_url if browser else None,
                )
            else:
                _show_authorization_url(flow.authorization_url, browser)
                raw = typer.prompt(
                    "Paste the authorization response (code#state)", err=True
                ).strip()

            info("Exchanging code for tokens...")
            tokens = client.exchange_code(raw, flow.state, flow.verifier)

            if create_key:
                info("Creating API key...")
                api_key = client.create_api_key(tokens.access_token)
                success("API key created. Store it securely; it won't be shown again.")
                print_result({"api_key": api_key})
                return

    success("Authorization complete.")
    print_result(_token_payload(tokens))


def _show_authorization_url(url: str, browser: bool) -> None:
    if browser:
        try:
            if open_browser(url):
                info("Browser opened. Please authorize the application.")
                info(f"If nothing happened, visit:\n{url}")
                return
        except BrowserLaunchError as exc:
            warning(str(exc))
    info(f"Please visit this URL to authorize:\n{url}")


@app.command("exchange")
def exchange_command(
    ctx: typer.Context,
    response: str = typer.Argument(help="Authorization response, 'code#state'."),
    state: str = typer.Option(..., "--state", help="State printed by the url command."),
    verifier: str = typer.Option(..., "--verifier", help="Verifier printed by the url command."),
    allow_missing_state: bool = typer.Option(
        False, "--allow-missing-state", help="Accept a bare code without its state."
    ),
) -> None:
    """Exchange an authorization response for a token set."""
    with _handle_errors():
        config = _resolve_config(ctx)
        with _make_client(config) as client:
            tokens = client.exchange_code(
                response, state, verifier, allow_missing_state=allow_missing_state
            )
    print_result(_token_payload(tokens))


@app.command("refresh")
def refresh_command(
    ctx: typer.Context,
    refresh_token: str = typer.Argument(help="Refresh token from a previous exchange."),
) -> None:
    """Mint a new token set from a refresh token."""
    with _handle_errors():
        config = _resolve_config(ctx)
        with _make_client(config) as client:
            tokens = client.refresh_token(refresh_token)
    print_result(_token_payload(tokens))


@app.command("create-key")
def create_key_command(
    ctx: typer.Context,
    access_token: str = typer.Argument(help="Console-mode access token."),
) -> None:
    """Create an API key with a Console-mode access token."""
    with _handle_errors():
        config = _resolve_config(ctx)
        with _make_client(config) as client:
            api_key = client.create_api_key(access_token)
    print_result({"api_key": api_key})


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``anthropic-auth`` console script.

    :class:`~anthropic_auth.exceptions.AnthropicAuthError` escaping a
    command exits with the error's ``exit_code``; anything else exits
    with :data:`~anthropic_auth.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except AnthropicAuthError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
