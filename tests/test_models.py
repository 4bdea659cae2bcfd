"""Tests for the pydantic models."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from xauth.auth.scopes import DEFAULT_SCOPES, Scope
from xauth.models import ClientSettings, OAuth2Token


def _token(**kwargs: object) -> OAuth2Token:
    data: dict[str, object] = {
        "token_type": "bearer",
        "expires_in": 7200,
        "access_token": "secret-access",
        "scope": "tweet.read offline.access",
        "refresh_token": "secret-refresh",
    }
    data.update(kwargs)
    return OAuth2Token.model_validate(data)


class TestOAuth2Token:
    def test_scope_from_wire_string(self) -> None:
        assert _token().scope == Scope.TWEET_READ | Scope.OFFLINE_ACCESS

    def test_scope_serializes_to_wire_string(self) -> None:
        assert _token().model_dump()["scope"] == "tweet.read offline.access"

    def test_unknown_scope_rejected(self) -> None:
        with pytest.raises(ValidationError, match="bogus.scope"):
            _token(scope="tweet.read bogus.scope")

    def test_expires_at(self) -> None:
        issued = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert _token(issued_at=issued).expires_at == issued + timedelta(hours=2)
        assert _token().expires_at is None

    def test_structural_equality(self) -> None:
        issued = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert _token(issued_at=issued) == _token(issued_at=issued)
        assert _token(issued_at=issued) != _token(issued_at=issued + timedelta(seconds=1))

    def test_secrets_not_in_repr(self) -> None:
        text = repr(_token())
        assert "secret-access" not in text
        assert "secret-refresh" not in text

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            _token().access_token = "other"  # type: ignore[misc]

    def test_authorization_header(self) -> None:
        assert _token().authorization_header == "Bearer secret-access"

    def test_naive_issued_at_rejected(self) -> None:
        with pytest.raises(ValidationError, match="timezone"):
            _token(issued_at=datetime(2024, 1, 1))


class TestClientSettings:
    def test_defaults(self) -> None:
        settings = ClientSettings()
        assert settings.redirect_uri == "http://localhost:18080"
        assert settings.scopes == DEFAULT_SCOPES
        assert settings.token_endpoint == "https://api.twitter.com/2/oauth2/token"
        assert settings.callback_timeout == 300.0
        assert not settings.has_oauth2

    def test_scopes_from_string(self) -> None:
        settings = ClientSettings(scopes="users.read")
        assert settings.scopes == Scope.USERS_READ

    def test_timeouts_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ClientSettings(callback_timeout=0)
