"""Authorization request URL construction."""

from __future__ import annotations

from urllib.parse import quote

from xauth.auth.pkce import PkceSession
from xauth.auth.scopes import Scope, format_scopes

AUTHORIZE_ENDPOINT = "https://twitter.com/i/oauth2/authorize"


def _encode(value: str) -> str:
    # quote(), not quote_plus(): spaces must become %20
    return quote(value, safe="")


def build_authorization_url(
    session: PkceSession,
    scopes: Scope,
    endpoint: str = AUTHORIZE_ENDPOINT,
) -> str:
    """Build the URL the user opens to authorize the client.

    The query carries ``response_type``, ``client_id``, ``redirect_uri``,
    ``scope``, ``state``, ``code_challenge`` and ``code_challenge_method``,
    in that order, each key and value percent-encoded as a URL query
    component.

    Args:
        session: The PKCE session of this authorization attempt.
        scopes: Scopes to request.
        endpoint: The provider's authorization endpoint. If it already has
            a query string the parameters are appended to it.

    Returns:
        The full authorization URL.
    """
    params = [
        ("response_type", "code"),
        ("client_id", session.client_id),
        ("redirect_uri", session.redirect_uri),
        ("scope", format_scopes(scopes)),
        ("state", session.state),
        ("code_challenge", session.code_challenge),
        ("code_challenge_method", session.code_challenge_method),
    ]
    query = "&".join(f"{_encode(key)}={_encode(value)}" for key, value in params)
    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}{query}"
