"""Local HTTP listener that captures the OAuth redirect.

When the client is configured with a localhost redirect URI
(``OAuthConfig(redirect_port=...)``), the provider redirects the browser to
``http://localhost:<port>/callback?code=...&state=...``.
:func:`run_callback_server` accepts that one redirect and returns it in
the same ``code#state`` form the user would otherwise paste, ready for
:meth:`~anthropic_auth.client.OAuthClient.exchange_code`.

The listener is blocking and serves on ``127.0.0.1`` only. Run it in a
worker thread (``asyncio.to_thread``) from async code.
"""

from __future__ import annotations

import hmac
import html
import logging
import socket
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from anthropic_auth.browser import open_browser_in_background
from anthropic_auth.exceptions import CallbackServerError, StateMismatchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0
DEFAULT_PATH = "/callback"

_PAGE = (
    "<html><head><title>{title}</title></head>"
    "<body><h1>{title}</h1><p>{detail}</p><p>You can close this window.</p></body></html>"
)


def find_free_port() -> int:
    """Find a free TCP port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def run_callback_server(
    port: int,
    expected_state: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
    path: str = DEFAULT_PATH,
    open_url: Optional[str] = None,
) -> str:
    """Wait for the OAuth redirect on ``127.0.0.1:<port><path>``.

    Requests to other paths (``/favicon.ico``) get a 404 and the listener
    keeps waiting. The first request to *path* ends the wait either way.

    Args:
        port: TCP port to bind.
        expected_state: When given, the redirect's ``state`` must match it.
        timeout: Seconds to wait for the redirect.
        path: Callback path component of the redirect URI.
        open_url: Authorization URL to open in the browser once the
            listener is bound.

    Returns:
        ``"code#state"``, or the bare code if the redirect carried no state.

    Raises:
        CallbackServerError: If the port cannot be bound, the provider
            returned an ``error``, no code arrived, or the wait timed out.
        StateMismatchError: If the redirect's state does not match.
    """
    result: dict[str, Optional[str]] = {"code": None, "state": None, "error": None}

    class CallbackHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            parsed = urlparse(self.path)
            if parsed.path != path:
                self.send_error(404)
                return

            params = parse_qs(parsed.query)
            if "error" in params:
                error = params["error"][0]
                description = params.get("error_description", [""])[0]
                result["error"] = f"{error} - {description}" if description else error
                self._reply("Authorization Failed", f"Error: {result['error']}")
            elif "code" in params:
                result["code"] = params["code"][0]
                result["state"] = params.get("state", [None])[0]
                self._reply(
                    "Authorization Successful",
                    "You have successfully authorized the application.",
                )
            else:
                result["error"] = "no_code"
                self._reply("Authorization Failed", "No authorization code received.")

        def _reply(self, title: str, detail: str) -> None:
            body = _PAGE.format(title=html.escape(title), detail=html.escape(detail))
            self.send_response(200)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.end_headers()
            self.wfile.write(body.encode("utf-8"))

        def log_message(self, format: str, *args: Any) -> None:
            logger.debug("callback server: " + format, *args)

    try:
        server = HTTPServer(("127.0.0.1", port), CallbackHandler)
    except OSError as exc:
        raise CallbackServerError(f"Failed to bind to 127.0.0.1:{port}: {exc}") from exc

    try:
        if open_url:
            open_browser_in_background(open_url)

        deadline = time.monotonic() + timeout
        while result["code"] is None and result["error"] is None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise CallbackServerError(
                    f"Timed out after {timeout:g}s waiting for the authorization callback"
                )
            server.timeout = remaining
            # Bounds reads on an accepted connection that never sends a request
            CallbackHandler.timeout = remaining
            server.handle_request()
    finally:
        server.server_close()

    if result["error"]:
        raise CallbackServerError(f"OAuth error: {result['error']}")

    code = result["code"]
    if not code:
        raise CallbackServerError("No authorization code received from callback")
    state = result["state"]
    if expected_state is not None and not hmac.compare_digest(
        (state or "").encode("utf-8"), expected_state.encode("utf-8")
    ):
        raise StateMismatchError("State mismatch in callback - possible CSRF attack")
    return f"{code}#{state}" if state is not None else code
