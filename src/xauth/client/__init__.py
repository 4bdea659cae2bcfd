"""X API client for xauth.

Classes:
    :class:`XClient` -- blocking client backed by :class:`httpx.Client`,
    authorized per request by an :class:`~xauth.auth.base.AuthPlugin`.
    :class:`XResponse` -- the response envelope it returns.

Example::

    from xauth.client import XClient

    with XClient(settings) as client:
        me = client.get_me()
"""

from xauth.client.response import XResponse
from xauth.client.sync_client import XClient

__all__ = ["XClient", "XResponse"]
