"""Tests for browser launching."""

from __future__ import annotations

import logging
import webbrowser
from unittest.mock import patch

import pytest

from anthropic_auth.browser import open_browser, open_browser_in_background
from anthropic_auth.exceptions import BrowserLaunchError

URL = "https://claude.ai/oauth/authorize?code=true"


class TestOpenBrowser:
    def test_opened(self) -> None:
        with patch("anthropic_auth.browser.webbrowser.open", return_value=True) as mock_open:
            assert open_browser(URL) is True
        mock_open.assert_called_once_with(URL)

    def test_no_browser_available(self) -> None:
        with patch("anthropic_auth.browser.webbrowser.open", return_value=False):
            assert open_browser(URL) is False

    def test_launch_failure(self) -> None:
        with patch(
            "anthropic_auth.browser.webbrowser.open",
            side_effect=webbrowser.Error("could not locate runnable browser"),
        ):
            with pytest.raises(BrowserLaunchError, match="could not locate"):
                open_browser(URL)


class TestOpenBrowserInBackground:
    def test_runs_in_daemon_thread(self) -> None:
        with patch("anthropic_auth.browser.webbrowser.open", return_value=True) as mock_open:
            thread = open_browser_in_background(URL)
            thread.join(timeout=5)
        assert thread.daemon
        mock_open.assert_called_once_with(URL)

    def test_failure_logged(self, caplog) -> None:
        with patch(
            "anthropic_auth.browser.webbrowser.open",
            side_effect=webbrowser.Error("boom"),
        ):
            with caplog.at_level(logging.WARNING, logger="anthropic_auth.browser"):
                open_browser_in_background(URL).join(timeout=5)
        assert "boom" in caplog.text
