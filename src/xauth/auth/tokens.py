"""OAuth 2.0 token endpoint interactions.

Implements the two token-endpoint calls of the authorization-code flow:

- authorization code to token exchange, with the PKCE ``code_verifier``
  (:rfc:`6749` section 4.1.3, :rfc:`7636` section 4.5);
- refresh of a token that is close to expiry (:rfc:`6749` section 6).

Requests are form-encoded and sent through an :class:`httpx.Client`, which
callers may inject (tests use :class:`httpx.MockTransport`). Nothing is
retried: a failed call raises and the caller decides what to do next.
"""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from xauth.auth.pkce import PkceSession
from xauth.exceptions import (
    ConnectionError_,
    TokenDecodeError,
    TokenExchangeError,
    TokenRefreshError,
)
from xauth.models import OAuth2Token

logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = "https://api.twitter.com/2/oauth2/token"

REFRESH_MARGIN = timedelta(minutes=10)
"""A token is refreshed once it is this close to its expiry."""

DEFAULT_EXPIRES_IN = 3600
"""Lifetime assumed when a refresh response omits ``expires_in``."""


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """Build an HTTP Basic ``Authorization`` value for the client credentials."""
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


def refresh_due(token: OAuth2Token, now: datetime) -> bool:
    """Return True when *token* should be refreshed at *now*.

    A token with an unknown expiry is always due.
    """
    expires_at = token.expires_at
    if expires_at is None:
        return True
    return now >= expires_at - REFRESH_MARGIN


class TokenExchanger:
    """Exchange authorization codes for tokens and refresh them.

    Args:
        http_client: Client used for token requests. When omitted, one is
            created with *timeout* and closed by :meth:`close`.
        timeout: Request timeout in seconds for the owned client.

    Example::

        with TokenExchanger() as exchanger:
            token = exchanger.exchange(code, session, TOKEN_ENDPOINT)
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> TokenExchanger:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def exchange(
        self,
        code: str,
        session: PkceSession,
        token_endpoint: str = TOKEN_ENDPOINT,
        now: Optional[datetime] = None,
    ) -> OAuth2Token:
        """Exchange an authorization code for an access token.

        The request is authenticated with HTTP Basic built from the
        session's client id and secret and carries the session's
        ``code_verifier`` and ``redirect_uri``.

        Args:
            code: The authorization code captured from the redirect.
            session: The PKCE session the authorization URL was built from.
            token_endpoint: The provider's token endpoint.
            now: Issue time to stamp on the token (defaults to the current
                UTC time).

        Returns:
            The new :class:`~xauth.models.OAuth2Token`.

        Raises:
            TokenExchangeError: If the endpoint answers with a non-2xx status.
            TokenDecodeError: If a 2xx body is not a valid token response.
            ConnectionError_: On network failures.
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": session.redirect_uri,
            "code_verifier": session.code_verifier,
        }
        headers = {"Authorization": basic_auth_header(session.client_id, session.client_secret)}

        logger.debug("Exchanging authorization code at %s", token_endpoint)
        response = self._post(token_endpoint, data, headers)
        if not response.is_success:
            logger.warning("Token exchange failed with status %s", response.status_code)
            raise TokenExchangeError(response.status_code, response.text)

        payload = self._decode(response)
        payload["issued_at"] = now or utcnow()
        try:
            token = OAuth2Token.model_validate(payload)
        except ValidationError as exc:
            raise TokenDecodeError(f"Invalid token response: {exc}") from exc

        logger.info("Token exchange successful (expires in %ss)", token.expires_in)
        return token

    def refresh_if_needed(
        self,
        token: OAuth2Token,
        client_id: str,
        client_secret: Optional[str],
        token_endpoint: str = TOKEN_ENDPOINT,
        now: Optional[datetime] = None,
    ) -> OAuth2Token:
        """Refresh *token* if it expires within :data:`REFRESH_MARGIN`.

        When the token is not yet due the very same object is returned and
        no request is made. Otherwise a ``refresh_token`` grant is sent,
        with HTTP Basic auth when *client_secret* is non-empty.

        The returned token replaces the access token, keeps the previous
        refresh token unless the response supplies a new one, and gets a
        fresh ``issued_at`` with ``expires_in`` from the response
        (:data:`DEFAULT_EXPIRES_IN` when absent).

        Args:
            token: The current token.
            client_id: OAuth 2.0 client identifier.
            client_secret: OAuth 2.0 client secret, or ``None``/``""`` for
                public clients.
            token_endpoint: The provider's token endpoint.
            now: The current time (defaults to UTC now).

        Returns:
            *token* itself, or its replacement.

        Raises:
            TokenRefreshError: If the token has no refresh token or the
                endpoint answers with a non-2xx status.
            TokenDecodeError: If a 2xx body is not a valid token response.
            ConnectionError_: On network failures.
        """
        now = now or utcnow()
        if not refresh_due(token, now):
            return token

        if not token.refresh_token:
            raise TokenRefreshError(
                "no refresh token available (request the offline.access scope)"
            )

        data = {
            "grant_type": "refresh_token",
            "refresh_token": token.refresh_token,
            "client_id": client_id,
        }
        headers: dict[str, str] = {}
        if client_secret:
            headers["Authorization"] = basic_auth_header(client_id, client_secret)

        logger.debug("Refreshing access token at %s", token_endpoint)
        response = self._post(token_endpoint, data, headers)
        if not response.is_success:
            logger.warning("Token refresh failed with status %s", response.status_code)
            raise TokenRefreshError(response.text)

        payload = self._decode(response)
        fields: dict[str, Any] = {
            "token_type": payload.get("token_type", token.token_type),
            "expires_in": payload.get("expires_in", DEFAULT_EXPIRES_IN),
            "access_token": payload.get("access_token"),
            "scope": payload.get("scope", token.scope),
            "refresh_token": payload.get("refresh_token") or token.refresh_token,
            "issued_at": now,
        }
        try:
            refreshed = OAuth2Token.model_validate(fields)
        except ValidationError as exc:
            raise TokenDecodeError(f"Invalid token refresh response: {exc}") from exc

        logger.info("Access token refreshed (expires in %ss)", refreshed.expires_in)
        return refreshed

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _post(self, url: str, data: dict[str, str], headers: dict[str, str]) -> httpx.Response:
        try:
            return self._client.post(
                url,
                data=data,
                headers={"Accept": "application/json", **headers},
            )
        except httpx.HTTPError as exc:
            raise ConnectionError_(f"Token request to {url} failed: {exc}") from exc

    @staticmethod
    def _decode(response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise TokenDecodeError(f"Token response is not JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise TokenDecodeError(
                f"Token response must be a JSON object, got {type(payload).__name__}"
            )
        return payload
