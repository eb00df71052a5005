"""Tests for the anthropic-auth CLI."""

from __future__ import annotations

import json
from typing import Optional

import pytest
from typer.testing import CliRunner

from anthropic_auth import __version__
from anthropic_auth import app as app_module
from anthropic_auth.app import app
from anthropic_auth.client import OAuthClient
from anthropic_auth.models import OAuthConfig, OAuthFlow, OAuthMode
from anthropic_auth.transport.base import HTTPResponse

runner = CliRunner()

T = 1_700_000_000


class RecordingClient(OAuthClient):
    """OAuthClient that remembers the last flow it started."""

    last_flow: Optional[OAuthFlow] = None

    def start_flow(self, mode: OAuthMode) -> OAuthFlow:
        self.last_flow = super().start_flow(mode)
        return self.last_flow


@pytest.fixture
def install_client(monkeypatch, clock):
    """Route the CLI through a RecordingClient over a fake transport."""
    created: list[RecordingClient] = []
    configs: list[OAuthConfig] = []

    def install(transport) -> list[RecordingClient]:
        def factory(config: OAuthConfig) -> RecordingClient:
            configs.append(config)
            client = RecordingClient(config, transport=transport, clock=clock)
            created.append(client)
            return client

        monkeypatch.setattr(app_module, "_make_client", factory)
        return created

    install.configs = configs
    return install


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for var in (
        "ANTHROPIC_AUTH_CLIENT_ID",
        "ANTHROPIC_AUTH_REDIRECT_URI",
        "ANTHROPIC_AUTH_REDIRECT_PORT",
        "ANTHROPIC_AUTH_TOKEN_URL",
    ):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"anthropic-auth {__version__}" in result.stdout

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("login", "url", "exchange", "refresh", "create-key"):
            assert command in result.stdout

    def test_client_id_override(self, install_client, make_transport) -> None:
        install_client(make_transport())
        result = runner.invoke(app, ["--json", "--client-id", "my-client", "url"])
        assert result.exit_code == 0, result.output
        assert "client_id=my-client" in json.loads(result.stdout)["authorization_url"]

    def test_invalid_redirect_port(self) -> None:
        result = runner.invoke(app, ["--no-color", "--redirect-port", "70000", "url"])
        assert result.exit_code == 2
        assert "redirect_port" in result.output


# ---------------------------------------------------------------------------
# url / exchange
# ---------------------------------------------------------------------------


class TestUrlAndExchange:
    def test_url_prints_flow(self, install_client, make_transport) -> None:
        install_client(make_transport())
        result = runner.invoke(app, ["--json", "url", "--mode", "console"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["mode"] == "console"
        assert payload["authorization_url"].startswith("https://console.anthropic.com/oauth/authorize?")
        assert f"state={payload['state']}" in payload["authorization_url"]
        assert len(payload["verifier"]) == 43

    def test_exchange(self, install_client, make_transport, json_response, token_payload) -> None:
        transport = make_transport(json_response(token_payload()))
        install_client(transport)

        result = runner.invoke(
            app, ["--json", "exchange", "abc#st", "--state", "st", "--verifier", "v" * 43]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {
            "access_token": "at-1",
            "refresh_token": "rt-1",
            "expires_at": T + 3600,
        }
        assert transport.calls[0]["payload"]["code"] == "abc"

    def test_exchange_state_mismatch(self, install_client, make_transport) -> None:
        transport = make_transport()
        install_client(transport)

        result = runner.invoke(
            app,
            ["--no-color", "exchange", "abc#evil", "--state", "st", "--verifier", "v" * 43],
        )

        assert result.exit_code == 3
        assert "State mismatch" in result.output
        assert transport.calls == []

    def test_exchange_allow_missing_state(
        self, install_client, make_transport, json_response, token_payload
    ) -> None:
        transport = make_transport(json_response(token_payload()))
        install_client(transport)

        result = runner.invoke(
            app,
            [
                "--json",
                "exchange",
                "abc",
                "--state",
                "st",
                "--verifier",
                "v" * 43,
                "--allow-missing-state",
            ],
        )

        assert result.exit_code == 0, result.output
        assert transport.calls[0]["payload"]["state"] == "st"


# ---------------------------------------------------------------------------
# refresh / create-key
# ---------------------------------------------------------------------------


class TestRefreshAndCreateKey:
    def test_refresh(self, install_client, make_transport, json_response, token_payload) -> None:
        install_client(make_transport(json_response(token_payload(access_token="at-2"))))
        result = runner.invoke(app, ["--json", "refresh", "rt-1"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["access_token"] == "at-2"

    def test_refresh_provider_error(self, install_client, make_transport) -> None:
        install_client(make_transport(HTTPResponse(status=400, body='{"error": "invalid_grant"}')))
        result = runner.invoke(app, ["--no-color", "refresh", "rt-1"])

        assert result.exit_code == 5
        assert "Error: HTTP 400" in result.output

    def test_refresh_verbose_logs(
        self, install_client, make_transport, json_response, token_payload
    ) -> None:
        install_client(make_transport(json_response(token_payload())))
        result = runner.invoke(app, ["--no-color", "--verbose", "refresh", "rt-1"])

        assert result.exit_code == 0, result.output
        assert "[debug] Refreshing access token" in result.output

    def test_create_key(self, install_client, make_transport, json_response) -> None:
        install_client(make_transport(json_response({"raw_key": "sk-ant-xyz"})))
        result = runner.invoke(app, ["--json", "create-key", "at-1"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"api_key": "sk-ant-xyz"}

    def test_create_key_unauthorized(self, install_client, make_transport) -> None:
        install_client(make_transport(HTTPResponse(status=401, body="expired")))
        result = runner.invoke(app, ["--no-color", "create-key", "at-1"])

        assert result.exit_code == 3
        assert "HTTP 401" in result.output


# ---------------------------------------------------------------------------
# login
# ---------------------------------------------------------------------------


class TestLogin:
    @pytest.fixture(autouse=True)
    def _no_browser(self, monkeypatch):
        monkeypatch.setattr(app_module, "open_browser", lambda url: False)

    def _paste_matching_state(self, monkeypatch, created: list[RecordingClient]) -> None:
        monkeypatch.setattr(
            app_module.typer,
            "prompt",
            lambda *args, **kwargs: f"auth-code#{created[0].last_flow.state}",
        )

    def test_paste_flow(
        self, monkeypatch, install_client, make_transport, json_response, token_payload
    ) -> None:
        transport = make_transport(json_response(token_payload()))
        created = install_client(transport)
        self._paste_matching_state(monkeypatch, created)

        result = runner.invoke(app, ["--json", "--quiet", "login", "--no-browser"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["refresh_token"] == "rt-1"
        payload = transport.calls[0]["payload"]
        assert payload["code"] == "auth-code"
        assert payload["code_verifier"] == created[0].last_flow.verifier

    def test_paste_flow_create_key(
        self, monkeypatch, install_client, make_transport, json_response, token_payload
    ) -> None:
        transport = make_transport(
            json_response(token_payload()),
            json_response({"raw_key": "sk-ant-xyz"}),
        )
        created = install_client(transport)
        self._paste_matching_state(monkeypatch, created)

        result = runner.invoke(
            app, ["--json", "--quiet", "login", "--mode", "console", "--create-key"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"api_key": "sk-ant-xyz"}
        assert created[0].last_flow.mode is OAuthMode.CONSOLE
        assert transport.calls[1]["headers"] == {"Authorization": "Bearer at-1"}

    def test_pasted_wrong_state(self, monkeypatch, install_client, make_transport) -> None:
        transport = make_transport()
        install_client(transport)
        monkeypatch.setattr(app_module.typer, "prompt", lambda *args, **kwargs: "auth-code#evil")

        result = runner.invoke(app, ["--no-color", "login"])

        assert result.exit_code == 3
        assert transport.calls == []

    def test_callback_flow(
        self, monkeypatch, install_client, make_transport, json_response, token_payload
    ) -> None:
        transport = make_transport(json_response(token_payload()))
        created = install_client(transport)
        seen: dict = {}

        def fake_server(port, expected_state=None, path=None, timeout=None, open_url=None):
            seen.update(port=port, path=path, timeout=timeout, open_url=open_url)
            return f"auth-code#{expected_state}"

        monkeypatch.setattr(app_module, "run_callback_server", fake_server)

        result = runner.invoke(
            app, ["--json", "--quiet", "login", "--callback", "--no-browser", "--timeout", "30"]
        )

        assert result.exit_code == 0, result.output
        assert seen == {"port": 1455, "path": "/callback", "timeout": 30.0, "open_url": None}
        assert install_client.configs[-1].redirect_uri == "http://localhost:1455/callback"
        assert transport.calls[0]["payload"]["redirect_uri"] == "http://localhost:1455/callback"
        assert transport.calls[0]["payload"]["state"] == created[0].last_flow.state

    def test_callback_flow_custom_port(
        self, monkeypatch, install_client, make_transport, json_response, token_payload
    ) -> None:
        install_client(make_transport(json_response(token_payload())))
        seen: dict = {}

        def fake_server(port, expected_state=None, path=None, timeout=None, open_url=None):
            seen.update(port=port, open_url=open_url)
            return f"auth-code#{expected_state}"

        monkeypatch.setattr(app_module, "run_callback_server", fake_server)

        result = runner.invoke(
            app, ["--json", "--quiet", "--redirect-port", "9000", "login", "--callback"]
        )

        assert result.exit_code == 0, result.output
        assert seen["port"] == 9000
        assert seen["open_url"].startswith("https://claude.ai/oauth/authorize?")

    def test_callback_flow_listens_on_redirect_uri_path(
        self, monkeypatch, install_client, make_transport, json_response, token_payload
    ) -> None:
        transport = make_transport(json_response(token_payload()))
        install_client(transport)
        monkeypatch.setenv("ANTHROPIC_AUTH_REDIRECT_URI", "http://localhost:8765/oauth/cb")
        seen: dict = {}

        def fake_server(port, expected_state=None, path=None, timeout=None, open_url=None):
            seen.update(port=port, path=path)
            return f"auth-code#{expected_state}"

        monkeypatch.setattr(app_module, "run_callback_server", fake_server)

        result = runner.invoke(app, ["--json", "--quiet", "login", "--callback", "--no-browser"])

        assert result.exit_code == 0, result.output
        assert seen == {"port": 8765, "path": "/oauth/cb"}
        assert transport.calls[0]["payload"]["redirect_uri"] == "http://localhost:8765/oauth/cb"
