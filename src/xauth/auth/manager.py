"""Plugin selection -- pick the auth plugin for a credential set.

:func:`create_auth_plugin` is the single place that decides how requests
are authorized: an OAuth 2.0 client identity selects the
authorization-code plugin, otherwise OAuth 1.0a credentials select the
signing plugin. When both are configured OAuth 2.0 wins.

See Also:
    :class:`~xauth.auth.base.AuthPlugin` -- the plugin interface.
    :class:`~xauth.client.sync_client.XClient` -- consumes the
    :class:`~xauth.auth.base.AuthResult` produced by the plugin.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

import httpx

from xauth.auth.base import AuthPlugin
from xauth.exceptions import MissingCredentialsError

if TYPE_CHECKING:
    from xauth.models import ClientSettings

logger = logging.getLogger(__name__)


def create_auth_plugin(
    settings: ClientSettings,
    display: Optional[Callable[[str], None]] = None,
    http_client: Optional[httpx.Client] = None,
) -> AuthPlugin:
    """Create the auth plugin matching the configured credentials.

    Args:
        settings: Client settings carrying OAuth 2.0 and/or OAuth 1.0a
            credentials.
        display: Receives the authorization URL when the OAuth 2.0 flow
            needs a human. Defaults to opening the system browser.
        http_client: Client for token endpoint calls (OAuth 2.0 only).

    Returns:
        An :class:`~xauth.auth.base.AuthPlugin` ready to authorize requests.

    Raises:
        MissingCredentialsError: If neither credential set is configured,
            or the chosen plugin reports configuration errors.
    """
    plugin: AuthPlugin
    if settings.has_oauth2:
        from xauth.plugins.oauth2_auth_code import OAuth2AuthCodePlugin

        plugin = OAuth2AuthCodePlugin(settings, display=display, http_client=http_client)
    elif settings.legacy is not None:
        from xauth.plugins.oauth1 import OAuth1Plugin

        plugin = OAuth1Plugin(settings.legacy)
    else:
        raise MissingCredentialsError(
            "No credentials configured: set X_CLIENT_ID for OAuth 2.0, or "
            "X_CONSUMER_KEY, X_CONSUMER_SECRET, X_ACCESS_TOKEN and "
            "X_ACCESS_TOKEN_SECRET for OAuth 1.0a"
        )

    errors = plugin.validate_config()
    if errors:
        raise MissingCredentialsError("; ".join(errors))

    logger.debug("Using %s authorization", plugin.auth_type)
    return plugin
