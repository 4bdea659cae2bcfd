"""OAuth 2.0 Authorization Code authentication plugin with PKCE.

Implements the ``oauth2_auth_code`` auth type: a local callback listener
captures the redirect, the code is exchanged for a token, and the token is
cached and refreshed in memory.

Exports:
    :class:`OAuth2AuthCodePlugin` -- the plugin class.
    :func:`open_in_browser` -- the default display callback.

See Also:
    :mod:`xauth.auth.base` for the plugin interface contract.
"""

from xauth.plugins.oauth2_auth_code.plugin import OAuth2AuthCodePlugin, open_in_browser

__all__ = ["OAuth2AuthCodePlugin", "open_in_browser"]
