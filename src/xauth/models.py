"""Canonical Pydantic models shared across all xauth modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Credential and token models** -- immutable values handed between the
authorization components:
    :class:`OAuth2Token`, :class:`LegacyCredentials`.

**Authorization outcomes** -- what the local callback listener observed:
    :class:`AuthorizationCode`, :class:`AuthorizationFailure` (together the
    :data:`AuthorizationOutcome` union).

**Configuration models** -- built from the environment by
:func:`xauth.config.load_settings`:
    :class:`ClientSettings`.

:class:`~xauth.auth.pkce.PkceSession` is deliberately not here: it is a
per-attempt value that never leaves :mod:`xauth.auth`.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional, Union

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_serializer, field_validator

from xauth.auth.scopes import DEFAULT_SCOPES, Scope, format_scopes, parse_scopes
from xauth.exceptions import InvalidScopeError


def _coerce_scope(value: Any) -> Scope:
    """Accept a :class:`Scope`, an int bitmask, or the wire string."""
    if isinstance(value, str):
        try:
            return parse_scopes(value)
        except InvalidScopeError as exc:
            raise ValueError(str(exc)) from exc
    if isinstance(value, int) and not isinstance(value, bool):
        return Scope(value)
    raise ValueError(f"Expected a scope string or Scope flags, got {type(value).__name__}")


# --- Tokens and credentials ---


class OAuth2Token(BaseModel):
    """An OAuth 2.0 access token as returned by the token endpoint.

    Tokens are immutable: a refresh produces a new instance that replaces
    the cached one. Equality compares every field, ``issued_at`` included.

    ``issued_at`` is not part of the wire format; it is stamped by
    :class:`~xauth.auth.tokens.TokenExchanger` when the token is received.
    It must be timezone-aware. A token without ``issued_at`` has an unknown
    expiry and is treated as already expired.

    Example::

        OAuth2Token.model_validate({
            "token_type": "bearer",
            "expires_in": 7200,
            "access_token": "...",
            "scope": "tweet.read users.read",
        })
    """

    model_config = ConfigDict(frozen=True)

    token_type: str
    expires_in: int = Field(description="Lifetime in seconds from issue time")
    access_token: str = Field(repr=False)
    scope: Scope
    refresh_token: Optional[str] = Field(default=None, repr=False)
    issued_at: Optional[AwareDatetime] = None

    @field_validator("scope", mode="plain")
    @classmethod
    def _parse_scope(cls, value: Any) -> Scope:
        return _coerce_scope(value)

    @field_serializer("scope")
    def _serialize_scope(self, value: Scope) -> str:
        return format_scopes(value)

    @property
    def expires_at(self) -> Optional[datetime]:
        """Absolute expiry, or ``None`` when the issue time is unknown."""
        if self.issued_at is None:
            return None
        return self.issued_at + timedelta(seconds=self.expires_in)

    @property
    def authorization_header(self) -> str:
        """The ``Authorization`` header value for this token."""
        return f"Bearer {self.access_token}"


class LegacyCredentials(BaseModel):
    """OAuth 1.0a user-context credentials, supplied verbatim by the caller."""

    model_config = ConfigDict(frozen=True)

    consumer_key: str
    consumer_secret: str = Field(repr=False)
    access_token: str
    access_token_secret: str = Field(repr=False)


# --- Authorization outcomes ---


class AuthorizationCode(BaseModel):
    """The redirect carried an authorization code."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(repr=False)


class AuthorizationFailure(BaseModel):
    """The redirect carried an ``error`` (and maybe ``error_description``)."""

    model_config = ConfigDict(frozen=True)

    error: str
    description: str = "no details"


AuthorizationOutcome = Union[AuthorizationCode, AuthorizationFailure]


# --- Configuration ---


class ClientSettings(BaseModel):
    """Everything an X client needs to authorize its requests.

    Supply ``client_id`` (and usually ``client_secret``) for the OAuth 2.0
    authorization-code flow, or ``legacy`` for OAuth 1.0a signing. When
    both are present OAuth 2.0 wins.
    """

    client_id: Optional[str] = None
    client_secret: Optional[str] = Field(default=None, repr=False)
    redirect_uri: str = "http://localhost:18080"
    scopes: Scope = DEFAULT_SCOPES
    authorize_endpoint: str = "https://twitter.com/i/oauth2/authorize"
    token_endpoint: str = "https://api.twitter.com/2/oauth2/token"
    api_base_url: str = "https://api.twitter.com/2"
    callback_timeout: float = Field(
        default=300.0, gt=0, description="Seconds to wait for the browser redirect"
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="HTTP request timeout in seconds"
    )
    legacy: Optional[LegacyCredentials] = None

    @field_validator("scopes", mode="plain")
    @classmethod
    def _parse_scopes(cls, value: Any) -> Scope:
        return _coerce_scope(value)

    @field_serializer("scopes")
    def _serialize_scopes(self, value: Scope) -> str:
        return format_scopes(value)

    @property
    def has_oauth2(self) -> bool:
        """Whether an OAuth 2.0 client identity is configured."""
        return bool(self.client_id)
