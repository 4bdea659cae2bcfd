"""Single-use local HTTP listener for the OAuth 2.0 authorization redirect.

After the user approves (or rejects) the authorization request in their
browser, the provider redirects to the client's ``redirect_uri``. A
:class:`CallbackListener` binds that address, serves requests on a
background thread, and hands the first meaningful redirect back to the
thread blocked in :meth:`CallbackListener.wait`:

* ``?code=...`` -- answered with a 200 page, resolves to
  :class:`~xauth.models.AuthorizationCode`.
* ``?error=...[&error_description=...]`` -- answered with a 400 page,
  resolves to :class:`~xauth.models.AuthorizationFailure`.
* anything else (a favicon probe, a stray reload) -- answered with a 404
  page and ignored; the listener keeps waiting.

The socket is released on every exit path of :meth:`~CallbackListener.wait`:
a resolved outcome, a timeout, a cancellation, or an error.

Example::

    with CallbackListener("http://localhost:18080") as listener:
        outcome = listener.wait(timeout=300)
"""

from __future__ import annotations

import concurrent.futures
import html
import logging
import socketserver
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse, urlunparse

from xauth.exceptions import (
    AuthorizationCancelledError,
    AuthorizationTimeoutError,
    ListenerBindError,
)
from xauth.models import AuthorizationCode, AuthorizationFailure, AuthorizationOutcome

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.1

_SUCCESS_PAGE = (
    "Authorization successful",
    "You can close this window and return to the application.",
)
_WAITING_PAGE = (
    "Waiting for authorization",
    "This address only accepts the authorization redirect.",
)


def _page(title: str, message: str) -> str:
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(title)}</title></head>"
        f"<body><h1>{html.escape(title)}</h1><p>{html.escape(message)}</p></body></html>"
    )


class _CallbackServer(ThreadingHTTPServer):
    """Threaded HTTP server bound to one listener, without the reverse DNS lookup.

    Each connection gets its own daemon thread so an idle peer (a browser
    preconnect, say) cannot hold up the redirect or the shutdown.
    """

    listener: CallbackListener
    allow_reuse_port = False
    daemon_threads = True
    block_on_close = False

    def server_bind(self) -> None:
        # HTTPServer.server_bind() calls socket.getfqdn(), which can block
        # on reverse DNS for loopback addresses.
        socketserver.TCPServer.server_bind(self)
        host, port = self.server_address[:2]
        self.server_name = str(host)
        self.server_port = port

    def handle_error(self, request: Any, client_address: Any) -> None:
        logger.debug("Error while serving callback request from %s", client_address, exc_info=True)


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackServer

    # Seconds a connection may stay silent before it is dropped.
    timeout = 5

    def do_GET(self) -> None:
        params = parse_qs(urlparse(self.path).query, keep_blank_values=True)
        status, page, outcome = self.server.listener._interpret(params)
        try:
            body = page.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        finally:
            # Resolve even if the browser hung up mid-response.
            if outcome is not None:
                self.server.listener._settle(outcome=outcome)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("callback %s - %s", self.address_string(), format % args)


class CallbackListener:
    """Accept exactly one authorization redirect on ``redirect_uri``.

    The address is bound in the constructor so that a port conflict is
    reported before the user is sent to the browser. A port of ``0`` binds
    an ephemeral port; read the effective address back from
    :attr:`port` / :attr:`redirect_uri`.

    Args:
        redirect_uri: The redirect URI registered for the client, e.g.
            ``http://localhost:18080``. Its host and port are bound; any
            request path is accepted.
        expected_state: When set, redirects whose ``state`` parameter does
            not match are answered with 400 and ignored. May also be
            assigned as an attribute before :meth:`wait` is called.

    Raises:
        ListenerBindError: If the address cannot be bound.
    """

    def __init__(self, redirect_uri: str, expected_state: Optional[str] = None) -> None:
        parsed = urlparse(redirect_uri)
        host = parsed.hostname or "localhost"
        port = parsed.port if parsed.port is not None else (443 if parsed.scheme == "https" else 80)

        try:
            self._server = _CallbackServer((host, port), _CallbackHandler)
        except OSError as exc:
            raise ListenerBindError((host, port), str(exc)) from exc
        self._server.listener = self

        self._parsed = parsed
        self._host = host
        self.expected_state = expected_state
        self._future: concurrent.futures.Future[AuthorizationOutcome] = concurrent.futures.Future()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._waited = False
        self._closed = False
        logger.debug("Callback listener bound to %s:%s", host, self.port)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def port(self) -> int:
        """The bound TCP port."""
        return int(self._server.server_address[1])

    @property
    def redirect_uri(self) -> str:
        """The redirect URI with the effective port filled in."""
        netloc = f"{self._host}:{self.port}"
        if ":" in self._host:
            netloc = f"[{self._host}]:{self.port}"
        return urlunparse(self._parsed._replace(netloc=netloc))

    def wait(self, timeout: Optional[float] = None) -> AuthorizationOutcome:
        """Block until the authorization redirect arrives.

        May be called once per listener. The listener is closed when this
        returns or raises.

        Args:
            timeout: Seconds to wait, or ``None`` to wait indefinitely.

        Returns:
            The :class:`~xauth.models.AuthorizationCode` or
            :class:`~xauth.models.AuthorizationFailure` observed.

        Raises:
            AuthorizationTimeoutError: If nothing arrives within *timeout*.
            AuthorizationCancelledError: If :meth:`cancel` was called.
            RuntimeError: If called a second time.
        """
        with self._lock:
            if self._waited:
                raise RuntimeError("CallbackListener.wait() may only be called once")
            self._waited = True
            if not self._closed and not self._future.done():
                self._thread = threading.Thread(
                    target=self._server.serve_forever,
                    kwargs={"poll_interval": _POLL_INTERVAL},
                    name="xauth-callback",
                    daemon=True,
                )
                self._thread.start()

        try:
            return self._future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            raise AuthorizationTimeoutError(
                f"No authorization redirect received within {timeout:g} seconds"
            ) from None
        finally:
            self.close()

    def cancel(self) -> None:
        """Abort a pending :meth:`wait` from another thread.

        The waiting thread raises :class:`AuthorizationCancelledError` and
        releases the socket. Cancelling a listener nobody waits on closes
        it immediately. Has no effect once an outcome was observed.
        """
        self._settle(error=AuthorizationCancelledError("Authorization was cancelled"))
        with self._lock:
            waiting = self._waited
        if not waiting:
            self.close()

    def close(self) -> None:
        """Stop serving and release the socket. Safe to call repeatedly."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread
        if thread is not None:
            # Handlers run on their own threads; the loop checks every poll interval.
            self._server.shutdown()
            thread.join(timeout=_POLL_INTERVAL * 10)
        self._server.server_close()
        logger.debug("Callback listener on port %s closed", self.port)

    def __enter__(self) -> CallbackListener:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Called from the server thread
    # ------------------------------------------------------------------ #

    def _interpret(
        self, params: dict[str, list[str]]
    ) -> tuple[int, str, Optional[AuthorizationOutcome]]:
        """Map callback query parameters to ``(status, page, outcome)``."""

        def first(name: str) -> Optional[str]:
            values = params.get(name)
            return values[0] if values else None

        code = first("code")
        error = first("error")
        state = first("state")

        if self.expected_state is not None and (code is not None or error is not None):
            # Errors may legitimately omit state; codes may not.
            mismatched = state != self.expected_state
            if error is not None and code is None and state is None:
                mismatched = False
            if mismatched:
                logger.warning("Ignoring authorization redirect with a mismatched state")
                return (
                    400,
                    _page(
                        "Authorization failed",
                        "The state parameter does not match this authorization request.",
                    ),
                    None,
                )

        if code is not None:
            logger.info("Authorization code received")
            return 200, _page(*_SUCCESS_PAGE), AuthorizationCode(code=code)

        if error is not None:
            description = first("error_description") or "no details"
            logger.warning("Authorization redirect reported an error: %s", error)
            return (
                400,
                _page("Authorization error", f"Error: {error}. Description: {description}"),
                AuthorizationFailure(error=error, description=description),
            )

        return 404, _page(*_WAITING_PAGE), None

    def _settle(
        self,
        outcome: Optional[AuthorizationOutcome] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        """Resolve the pending future once; later calls are ignored."""
        with self._lock:
            if self._future.done():
                return
            if error is not None:
                self._future.set_exception(error)
            else:
                self._future.set_result(outcome)  # type: ignore[arg-type]
