"""OAuth 2.0 Authorization Code flow with PKCE auth plugin.

This module provides :class:`OAuth2AuthCodePlugin`, which implements the
``oauth2_auth_code`` auth type. It performs the full authorization-code
grant with PKCE (:rfc:`7636`):

1. Binds a :class:`~xauth.auth.callback.CallbackListener` on the
   configured redirect URI (a port conflict fails before any browser opens).
2. Generates a fresh :class:`~xauth.auth.pkce.PkceSession` and hands the
   authorization URL to the display callback.
3. Waits for the redirect and exchanges the code for a token.
4. Caches the token in memory and refreshes it before it expires.

The flow is single-flight: concurrent callers of :meth:`get_token` share
one authorization attempt and receive the same token or the same error.

See Also:
    :class:`xauth.auth.base.AuthPlugin` for the base interface.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import webbrowser
from typing import Callable, Mapping, Optional

import httpx

from xauth import output
from xauth.auth.authorize import build_authorization_url
from xauth.auth.base import AuthPlugin, AuthResult
from xauth.auth.callback import CallbackListener
from xauth.auth.pkce import PkceSession
from xauth.auth.tokens import TokenExchanger, refresh_due, utcnow
from xauth.exceptions import AuthorizationCancelledError, AuthorizationDeniedError
from xauth.models import AuthorizationFailure, ClientSettings, OAuth2Token

logger = logging.getLogger(__name__)

DisplayCallback = Callable[[str], None]


def open_in_browser(url: str) -> None:
    """Default display callback: print the URL and try the system browser.

    The browser is opened on a daemon thread so a slow or missing browser
    never delays the callback listener.
    """
    output.info("Open this URL in your browser to authorize xauth:")
    output.info(url)
    threading.Thread(target=webbrowser.open, args=(url,), daemon=True).start()


class OAuth2AuthCodePlugin(AuthPlugin):
    """Authorize requests with an OAuth 2.0 bearer token.

    Args:
        settings: Client settings with ``client_id`` (and usually
            ``client_secret``), redirect URI, scopes and endpoints.
        display: Receives the authorization URL when a human has to
            approve access. Defaults to :func:`open_in_browser`.
        http_client: Client used for token endpoint calls.
        token: A previously obtained token to start from. No
            authorization flow runs while it is cached.
        exchanger: Token exchanger to use instead of building one from
            *http_client*.
    """

    def __init__(
        self,
        settings: ClientSettings,
        display: Optional[DisplayCallback] = None,
        http_client: Optional[httpx.Client] = None,
        token: Optional[OAuth2Token] = None,
        exchanger: Optional[TokenExchanger] = None,
    ) -> None:
        self._settings = settings
        self._display = display or open_in_browser
        self._exchanger = exchanger or TokenExchanger(
            http_client, timeout=settings.request_timeout
        )
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._token = token
        self._in_flight: Optional[concurrent.futures.Future[OAuth2Token]] = None
        self._listener: Optional[CallbackListener] = None
        self._cancel_requested = False

    @property
    def auth_type(self) -> str:
        return "oauth2_auth_code"

    @property
    def token(self) -> Optional[OAuth2Token]:
        """The cached token, or ``None`` before the first authorization."""
        with self._lock:
            return self._token

    def get_token(self) -> OAuth2Token:
        """Return the cached token, running the authorization flow if needed.

        Only one flow runs at a time. Callers arriving while it is in
        progress block until it finishes and share its result.

        Returns:
            The current :class:`~xauth.models.OAuth2Token`.

        Raises:
            ListenerBindError: If the redirect URI's port is unavailable.
            AuthorizationTimeoutError: If no redirect arrives in
                ``settings.callback_timeout`` seconds.
            AuthorizationCancelledError: If :meth:`cancel` was called.
            AuthorizationDeniedError: If the provider redirected with an error.
            TokenExchangeError: If the code could not be exchanged.
        """
        with self._lock:
            if self._token is not None:
                return self._token
            future = self._in_flight
            owner = future is None
            if future is None:
                future = concurrent.futures.Future()
                self._in_flight = future
                self._cancel_requested = False

        if not owner:
            logger.debug("Waiting for the authorization flow already in progress")
            return future.result()

        try:
            token = self._authorize()
        except BaseException as exc:
            with self._lock:
                self._in_flight = None
            future.set_exception(exc)
            raise

        with self._lock:
            self._token = token
            self._in_flight = None
        future.set_result(token)
        return token

    def authenticate(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, str]] = None,
    ) -> AuthResult:
        """Return an ``Authorization: Bearer`` header for the request.

        Obtains a token via :meth:`get_token` and refreshes it first when it
        is close to expiry and a refresh token is available. A token that
        cannot be refreshed is sent as is.
        """
        token = self.get_token()
        if token.refresh_token and refresh_due(token, utcnow()):
            token = self._refresh_cached()
        return AuthResult(headers={"Authorization": token.authorization_header})

    def refresh(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, str]] = None,
    ) -> AuthResult:
        """Refresh the cached token if it is due and return the new header.

        Raises:
            TokenRefreshError: If the token is due but cannot be refreshed.
        """
        self.get_token()
        token = self._refresh_cached()
        return AuthResult(headers={"Authorization": token.authorization_header})

    def validate_config(self) -> list[str]:
        """Check that a client id is configured."""
        errors: list[str] = []
        if not self._settings.client_id:
            errors.append("OAuth 2.0 authorization requires a client id (X_CLIENT_ID)")
        return errors

    def cancel(self) -> None:
        """Cancel an authorization flow that is waiting for the redirect.

        The caller running the flow, and every caller sharing it, raises
        :class:`~xauth.exceptions.AuthorizationCancelledError`. A flow that
        has not started listening yet stops before the URL is displayed.
        Has no effect when no flow is running.
        """
        with self._lock:
            listener = self._listener
            if listener is None and self._in_flight is not None:
                # The flow has not reached its listener yet.
                self._cancel_requested = True
        if listener is not None:
            logger.info("Cancelling the pending authorization")
            listener.cancel()

    def close(self) -> None:
        """Release the token exchanger's HTTP client."""
        self._exchanger.close()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _authorize(self) -> OAuth2Token:
        settings = self._settings
        assert settings.client_id is not None

        with CallbackListener(settings.redirect_uri) as listener:
            session = PkceSession.generate(
                listener.redirect_uri, settings.client_id, settings.client_secret or ""
            )
            listener.expected_state = session.state
            url = build_authorization_url(session, settings.scopes, settings.authorize_endpoint)

            with self._lock:
                if self._cancel_requested:
                    raise AuthorizationCancelledError("Authorization was cancelled")
                self._listener = listener
            try:
                logger.info("Waiting for authorization on %s", listener.redirect_uri)
                self._display(url)
                outcome = listener.wait(timeout=settings.callback_timeout)
            finally:
                with self._lock:
                    self._listener = None

        if isinstance(outcome, AuthorizationFailure):
            raise AuthorizationDeniedError(outcome.error, outcome.description)

        return self._exchanger.exchange(outcome.code, session, settings.token_endpoint)

    def _refresh_cached(self) -> OAuth2Token:
        # One refresh at a time; later callers see the replaced token as not due.
        with self._refresh_lock:
            with self._lock:
                token = self._token
            if token is None:
                return self.get_token()
            refreshed = self._exchanger.refresh_if_needed(
                token,
                self._settings.client_id or "",
                self._settings.client_secret,
                self._settings.token_endpoint,
            )
            if refreshed is not token:
                with self._lock:
                    self._token = refreshed
            return refreshed
