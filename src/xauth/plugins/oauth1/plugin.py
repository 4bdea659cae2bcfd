"""OAuth 1.0a user-context auth plugin.

Signs every request with HMAC-SHA1 via :func:`xauth.auth.signing.sign_request`.
There is no token to obtain or refresh: the credentials are supplied
verbatim and each request gets a fresh nonce and timestamp.
"""

from __future__ import annotations

from typing import Mapping, Optional

from xauth.auth.base import AuthPlugin, AuthResult
from xauth.auth.signing import sign_request
from xauth.models import LegacyCredentials


class OAuth1Plugin(AuthPlugin):
    """Authorize requests with an ``Authorization: OAuth ...`` signature.

    Args:
        credentials: Consumer key/secret and access token/secret.
    """

    def __init__(self, credentials: LegacyCredentials) -> None:
        self._credentials = credentials

    @property
    def auth_type(self) -> str:
        return "oauth1"

    def authenticate(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, str]] = None,
    ) -> AuthResult:
        """Sign the request and return the ``Authorization`` header."""
        header = sign_request(method, url, self._credentials, params)
        return AuthResult(headers={"Authorization": header})

    def validate_config(self) -> list[str]:
        errors: list[str] = []
        for field in ("consumer_key", "consumer_secret", "access_token", "access_token_secret"):
            if not getattr(self._credentials, field):
                errors.append(f"OAuth 1.0a signing requires a non-empty {field}")
        return errors
