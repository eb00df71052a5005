"""Open the authorization URL in the user's browser."""

from __future__ import annotations

import logging
import threading
import webbrowser

from anthropic_auth.exceptions import BrowserLaunchError

logger = logging.getLogger(__name__)


def open_browser(url: str) -> bool:
    """Open *url* in the default browser.

    Returns:
        ``True`` if a browser was launched, ``False`` if none is available
        (headless hosts). Callers should then print the URL instead.

    Raises:
        BrowserLaunchError: If the configured browser fails to start.
    """
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as exc:
        raise BrowserLaunchError(f"Failed to open browser: {exc}") from exc
    logger.debug("Browser launch %s", "succeeded" if opened else "unavailable")
    return opened


def open_browser_in_background(url: str) -> threading.Thread:
    """Open *url* from a daemon thread so a slow launcher never blocks the caller."""

    def _open() -> None:
        try:
            open_browser(url)
        except BrowserLaunchError as exc:
            logger.warning("%s", exc)

    thread = threading.Thread(target=_open, daemon=True)
    thread.start()
    return thread
