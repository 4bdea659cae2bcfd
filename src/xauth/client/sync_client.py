"""Synchronous X API client with per-request authorization.

This module provides :class:`XClient`, a deliberately small client for
the X API v2. It wraps :class:`httpx.Client` and asks an
:class:`~xauth.auth.base.AuthPlugin` for the ``Authorization`` header of
every request (an OAuth 1.0a signature covers the method and URL, so the
header cannot be computed once up front).

Only two endpoints are exposed:

- :meth:`XClient.post_tweet` -- ``POST /tweets``
- :meth:`XClient.get_me` -- ``GET /users/me``

Requests are not retried. Error statuses raise
:class:`~xauth.exceptions.ApiError` with the problem ``title`` and
``detail`` from the response body.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import httpx

from xauth.auth.base import AuthPlugin
from xauth.auth.manager import create_auth_plugin
from xauth.client.response import XResponse, extract_response_data
from xauth.exceptions import ApiError, ConnectionError_, InvalidUsageError
from xauth.models import ClientSettings

logger = logging.getLogger(__name__)

TWEETS_PATH = "/tweets"
USERS_ME_PATH = "/users/me"

MAX_TWEET_LENGTH = 280


class XClient:
    """Synchronous client for the X API.

    Must be used as a context manager so that the underlying transport is
    opened and closed properly.

    Args:
        settings: Client settings (API base URL, timeouts, credentials).
        auth_plugin: Plugin that authorizes requests. When omitted one is
            chosen by :func:`~xauth.auth.manager.create_auth_plugin`.
        display: Display callback passed to the OAuth 2.0 plugin when
            *auth_plugin* is omitted.
        http_client: Pre-built client for API calls (used by tests with
            :class:`httpx.MockTransport`). It is not closed on exit.

    Raises:
        MissingCredentialsError: If no credentials are configured.

    Example::

        with XClient(load_settings()) as client:
            client.post_tweet("Hello from xauth")
    """

    def __init__(
        self,
        settings: ClientSettings,
        auth_plugin: Optional[AuthPlugin] = None,
        display: Optional[Callable[[str], None]] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings
        self._auth = auth_plugin or create_auth_plugin(settings, display=display)
        self._external_client = http_client
        self._client: Optional[httpx.Client] = http_client

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> XClient:
        if self._client is None:
            self._client = httpx.Client(timeout=self._settings.request_timeout)
        return self

    def __exit__(self, *args: object) -> None:
        if self._client is not None and self._client is not self._external_client:
            self._client.close()
            self._client = None

    @property
    def auth_plugin(self) -> AuthPlugin:
        """The plugin authorizing this client's requests."""
        return self._auth

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    def post_tweet(self, text: str) -> XResponse:
        """Publish a post.

        Args:
            text: Post text, at most 280 characters.

        Returns:
            The response; ``data`` holds the new post's ``id`` and ``text``.

        Raises:
            InvalidUsageError: If *text* is empty or longer than 280
                characters. Nothing is sent.
            ApiError: If the API answers with an error status.
            ConnectionError_: On network failures.
        """
        if not text:
            raise InvalidUsageError("Post text must not be empty")
        if len(text) > MAX_TWEET_LENGTH:
            raise InvalidUsageError(
                f"Post text is {len(text)} characters; the limit is {MAX_TWEET_LENGTH}"
            )
        return self.request("POST", TWEETS_PATH, json_body={"text": text})

    def get_me(self) -> XResponse:
        """Return the authorized user's profile (``id``, ``name``, ``username``)."""
        return self.request("GET", USERS_ME_PATH)

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
    ) -> XResponse:
        """Send an authorized request to ``{api_base_url}{path}``.

        Query *params* are included in the OAuth 1.0a signature; a JSON
        body is not.

        Raises:
            ApiError: On 4xx/5xx responses.
            ConnectionError_: On network / timeout errors.
        """
        if self._client is None:
            raise RuntimeError("XClient must be used as a context manager")

        url = f"{self._settings.api_base_url.rstrip('/')}{path}"
        auth = self._auth.authenticate(method, url, params)
        headers = {"Accept": "application/json", **auth.headers}
        merged_params = {**auth.params, **(params or {})}

        logger.debug("%s %s", method.upper(), url)
        try:
            response = self._client.request(
                method,
                url,
                params=merged_params or None,
                headers=headers,
                cookies=auth.cookies or None,
                json=json_body,
            )
        except httpx.HTTPError as exc:
            raise ConnectionError_(f"Request to {url} failed: {exc}") from exc

        logger.debug("HTTP %s from %s %s", response.status_code, method.upper(), path)
        self._map_response_error(response)
        return XResponse.from_httpx(response)

    @staticmethod
    def _map_response_error(response: httpx.Response) -> None:
        """Raise :class:`ApiError` for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        body = extract_response_data(response)
        title = ""
        detail = ""
        if isinstance(body, dict):
            title = str(body.get("title") or body.get("error") or "")
            detail = str(body.get("detail") or body.get("error_description") or "")
            errors = body.get("errors")
            if not detail and isinstance(errors, list) and errors and isinstance(errors[0], dict):
                detail = str(errors[0].get("message") or "")
        elif isinstance(body, str):
            detail = body[:200]

        logger.warning("X API returned HTTP %s", status)
        raise ApiError(status, title=title, detail=detail)
