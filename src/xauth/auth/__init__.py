"""Authorization core for xauth.

This package holds the building blocks of both supported schemes:

- :mod:`~xauth.auth.pkce`, :mod:`~xauth.auth.scopes`,
  :mod:`~xauth.auth.authorize`, :mod:`~xauth.auth.callback` and
  :mod:`~xauth.auth.tokens` -- the OAuth 2.0 authorization-code flow with
  PKCE, one step per module.
- :mod:`~xauth.auth.signing` -- OAuth 1.0a HMAC-SHA1 request signing.

On top of them sit the plugin contract and the factory that selects a
plugin for a credential set:

- :class:`AuthPlugin` / :class:`AuthResult` -- the plugin interface.
- :func:`create_auth_plugin` -- returns the plugin for
  :class:`~xauth.models.ClientSettings`.

Typical usage::

    from xauth.auth import create_auth_plugin

    plugin = create_auth_plugin(settings)
    auth_result = plugin.authenticate("GET", url)
    # auth_result.headers["Authorization"] is ready to send.
"""

from xauth.auth.base import AuthPlugin, AuthResult
from xauth.auth.manager import create_auth_plugin

__all__ = [
    "AuthPlugin",
    "AuthResult",
    "create_auth_plugin",
]
