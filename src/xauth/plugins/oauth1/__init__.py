"""OAuth 1.0a HMAC-SHA1 signing plugin.

Exports:
    :class:`OAuth1Plugin` -- the plugin class.
"""

from xauth.plugins.oauth1.plugin import OAuth1Plugin

__all__ = ["OAuth1Plugin"]
