"""Tests for the xauth CLI commands and entry point."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from xauth import __version__
from xauth.app import app, main
from xauth.auth.scopes import Scope
from xauth.client import XResponse
from xauth.exceptions import ApiError, InvalidUsageError, MissingCredentialsError
from xauth.exit_codes import EXIT_API_ERROR, EXIT_CANCELLED, EXIT_GENERIC_FAILURE
from xauth.models import OAuth2Token

DOCS_URL = "https://api.twitter.com/1.1/statuses/update.json"
DOCS_NONCE = "kYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg"


def _mock_client(response: XResponse) -> MagicMock:
    """Build a stand-in for the XClient class returning *response*."""
    client_cls = MagicMock()
    client = client_cls.return_value.__enter__.return_value
    client.get_me.return_value = response
    client.post_tweet.return_value = response
    return client_cls


class TestVersion:
    def test_version_flag(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"xauth {__version__}" in result.stdout


class TestSignCommand:
    def test_reference_signature(self, cli_runner, legacy_env) -> None:
        result = cli_runner.invoke(
            app,
            [
                "sign",
                "POST",
                DOCS_URL,
                "-d",
                "include_entities=true",
                "-d",
                "status=Hello Ladies + Gentlemen, a signed OAuth request!",
                "--nonce",
                DOCS_NONCE,
                "--timestamp",
                "1318622958",
            ],
        )
        assert result.exit_code == 0, result.output
        header = result.stdout.strip()
        assert header.startswith("OAuth oauth_consumer_key=")
        assert 'oauth_signature="hCtSmYh%2BiHYCEqBWrE7C7hYmtUk%3D"' in header
        assert f'oauth_nonce="{DOCS_NONCE}"' in header

    def test_missing_legacy_credentials(self, cli_runner, clean_env) -> None:
        result = cli_runner.invoke(app, ["sign", "GET", DOCS_URL])
        assert isinstance(result.exception, MissingCredentialsError)

    def test_bad_param(self, cli_runner, legacy_env) -> None:
        result = cli_runner.invoke(app, ["sign", "GET", DOCS_URL, "-d", "novalue"])
        assert isinstance(result.exception, InvalidUsageError)


class TestLoginCommand:
    def test_requires_client_id(self, cli_runner, clean_env) -> None:
        result = cli_runner.invoke(app, ["login"])
        assert isinstance(result.exception, MissingCredentialsError)

    def test_prints_token(self, cli_runner, clean_env) -> None:
        clean_env.setenv("X_CLIENT_ID", "cid")
        token = OAuth2Token(
            token_type="bearer",
            expires_in=7200,
            access_token="printed-access",
            scope=Scope.TWEET_READ | Scope.USERS_READ,
            issued_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        with patch("xauth.app.OAuth2AuthCodePlugin") as plugin_cls:
            plugin_cls.return_value.get_token.return_value = token
            result = cli_runner.invoke(
                app, ["--json", "--quiet", "login", "--no-browser", "--scopes", "tweet.read users.read"]
            )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["access_token"] == "printed-access"
        assert payload["scope"] == "tweet.read users.read"
        settings = plugin_cls.call_args.args[0]
        assert settings.scopes == Scope.TWEET_READ | Scope.USERS_READ
        assert plugin_cls.call_args.kwargs["display"] is not None
        plugin_cls.return_value.close.assert_called_once()

    def test_invalid_scope_option(self, cli_runner, clean_env) -> None:
        clean_env.setenv("X_CLIENT_ID", "cid")
        result = cli_runner.invoke(app, ["login", "--scopes", "dm.read"])
        assert result.exception is not None
        assert "dm.read" in str(result.exception)


class TestApiCommands:
    def test_post_without_credentials(self, cli_runner, clean_env) -> None:
        result = cli_runner.invoke(app, ["post", "hello"])
        assert isinstance(result.exception, MissingCredentialsError)

    def test_post(self, cli_runner, legacy_env) -> None:
        client_cls = _mock_client(XResponse(status_code=201, data={"id": "42", "text": "hello"}))
        with patch("xauth.app.XClient", client_cls):
            result = cli_runner.invoke(app, ["--json", "--quiet", "post", "hello"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"id": "42", "text": "hello"}
        client_cls.return_value.__enter__.return_value.post_tweet.assert_called_once_with("hello")

    def test_me(self, cli_runner, legacy_env) -> None:
        data = {"id": "2244994945", "name": "X Dev", "username": "XDevelopers"}
        with patch("xauth.app.XClient", _mock_client(XResponse(status_code=200, data=data))):
            result = cli_runner.invoke(app, ["--plain", "me"])
        assert result.exit_code == 0, result.output
        assert "username\tXDevelopers" in result.stdout


class TestMain:
    def test_xauth_error_sets_exit_code(self, monkeypatch, capsys) -> None:
        def fail() -> None:
            raise ApiError(429, title="Too Many Requests")

        monkeypatch.setattr("xauth.app.app", fail)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == EXIT_API_ERROR
        assert "Too Many Requests" in capsys.readouterr().err

    def test_keyboard_interrupt(self, monkeypatch) -> None:
        def interrupt() -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr("xauth.app.app", interrupt)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == EXIT_CANCELLED

    def test_unexpected_error(self, monkeypatch) -> None:
        def crash() -> None:
            raise ValueError("boom")

        monkeypatch.setattr("xauth.app.app", crash)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == EXIT_GENERIC_FAILURE
