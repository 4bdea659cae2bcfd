"""Abstract base class for authorization plugins.

This module defines the two foundational types of the auth subsystem:

- :class:`AuthResult` -- a plain container for the HTTP headers, query
  parameters, and cookies that an auth plugin produces for one request.
- :class:`AuthPlugin` -- the abstract base class that every authorization
  strategy extends.

Two strategies ship with xauth: the OAuth 2.0 authorization-code flow
(``Authorization: Bearer ...``) and OAuth 1.0a signing
(``Authorization: OAuth ...``). Unlike a bearer token, an OAuth 1.0a
signature covers the request method, URL and parameters, so
:meth:`AuthPlugin.authenticate` receives all three.

See Also:
    :mod:`xauth.auth.manager` for choosing a plugin from
    :class:`~xauth.models.ClientSettings`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Optional


class AuthResult:
    """Container for authorization artifacts to inject into an HTTP request.

    Args:
        headers: HTTP headers to add (e.g. ``{"Authorization": "Bearer ..."}``).
        params: Query-string parameters to add.
        cookies: Cookies to add.

    Example::

        result = AuthResult(headers={"Authorization": "Bearer tok123"})
        assert result.headers["Authorization"] == "Bearer tok123"
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        cookies: dict[str, str] | None = None,
    ):
        self.headers = headers or {}
        self.params = params or {}
        self.cookies = cookies or {}


class AuthPlugin(ABC):
    """Abstract base class for authorization plugins.

    Every concrete strategy must provide:

    1. An :attr:`auth_type` property returning a unique identifier
       (``"oauth2_auth_code"``, ``"oauth1"``).
    2. An :meth:`authenticate` implementation returning the
       :class:`AuthResult` for one outgoing request.
    """

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Return the unique auth type identifier this plugin handles."""
        ...

    @abstractmethod
    def authenticate(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, str]] = None,
    ) -> AuthResult:
        """Return auth artifacts for a request.

        Args:
            method: HTTP method of the request.
            url: Request URL without query string.
            params: Query or form parameters sent with the request.

        Returns:
            An :class:`AuthResult` whose ``headers["Authorization"]`` is set.

        Raises:
            AuthError: If authorization cannot be obtained.
        """
        ...

    def refresh(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, str]] = None,
    ) -> AuthResult:
        """Refresh credentials and return updated auth artifacts.

        The default implementation simply re-authenticates. Plugins holding
        an expiring token override this to refresh it first.
        """
        return self.authenticate(method, url, params)

    def validate_config(self) -> list[str]:
        """Validate the plugin's configuration before use.

        Returns:
            A list of error message strings. An empty list means the
            configuration is valid.
        """
        return []
