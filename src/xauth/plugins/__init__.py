"""Built-in authorization plugins for xauth.

* :mod:`xauth.plugins.oauth2_auth_code` -- OAuth 2.0 authorization code
  with PKCE and a local callback listener.
* :mod:`xauth.plugins.oauth1` -- OAuth 1.0a HMAC-SHA1 request signing.

Plugins are selected by :func:`xauth.auth.manager.create_auth_plugin`
rather than imported directly.
"""
