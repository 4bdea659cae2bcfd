"""Integration-style tests that spin up the local callback listener."""

from __future__ import annotations

import socket
import threading
import time
from http.client import HTTPConnection

import pytest

from xauth.auth.callback import CallbackListener
from xauth.exceptions import (
    AuthorizationCancelledError,
    AuthorizationTimeoutError,
    ListenerBindError,
)
from xauth.models import AuthorizationCode, AuthorizationFailure


def _simulate_callback(port: int, path: str) -> int:
    """Send a GET to the local listener and return the response status."""
    conn = HTTPConnection("127.0.0.1", port, timeout=5)
    try:
        conn.request("GET", path)
        response = conn.getresponse()
        response.read()
        return response.status
    finally:
        conn.close()


def _send_later(port: int, *paths: str, statuses: list[int] | None = None) -> threading.Thread:
    """Send *paths* one after another from a background thread."""

    def send() -> None:
        time.sleep(0.3)
        for path in paths:
            status = _simulate_callback(port, path)
            if statuses is not None:
                statuses.append(status)

    t = threading.Thread(target=send, daemon=True)
    t.start()
    return t


def _port_is_free(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            s.bind(("127.0.0.1", port))
        except OSError:
            return False
        return True


@pytest.fixture
def listener() -> CallbackListener:
    with CallbackListener("http://127.0.0.1:0/callback") as lst:
        yield lst


class TestCallbackOutcomes:
    def test_code_resolves(self, listener: CallbackListener) -> None:
        statuses: list[int] = []
        t = _send_later(listener.port, "/callback?code=abc123&state=xyz", statuses=statuses)

        outcome = listener.wait(timeout=5)
        t.join(timeout=5)

        assert outcome == AuthorizationCode(code="abc123")
        assert statuses == [200]

    def test_error_without_description(self, listener: CallbackListener) -> None:
        statuses: list[int] = []
        t = _send_later(listener.port, "/callback?error=access_denied", statuses=statuses)

        outcome = listener.wait(timeout=5)
        t.join(timeout=5)

        assert outcome == AuthorizationFailure(error="access_denied", description="no details")
        assert statuses == [400]

    def test_error_with_description(self, listener: CallbackListener) -> None:
        _send_later(
            listener.port,
            "/callback?error=invalid_scope&error_description=Scope%20not%20allowed",
        )
        outcome = listener.wait(timeout=5)
        assert outcome == AuthorizationFailure(
            error="invalid_scope", description="Scope not allowed"
        )

    def test_unrelated_request_does_not_resolve(self, listener: CallbackListener) -> None:
        statuses: list[int] = []
        t = _send_later(
            listener.port,
            "/favicon.ico",
            "/callback?foo=bar",
            "/callback?code=later",
            statuses=statuses,
        )

        outcome = listener.wait(timeout=5)
        t.join(timeout=5)

        assert outcome == AuthorizationCode(code="later")
        assert statuses == [404, 404, 200]

    def test_any_path_is_accepted(self, listener: CallbackListener) -> None:
        _send_later(listener.port, "/?code=rootpath")
        assert listener.wait(timeout=5) == AuthorizationCode(code="rootpath")

    def test_blank_code_resolves(self, listener: CallbackListener) -> None:
        statuses: list[int] = []
        t = _send_later(listener.port, "/callback?code=", statuses=statuses)

        outcome = listener.wait(timeout=5)
        t.join(timeout=5)

        assert outcome == AuthorizationCode(code="")
        assert statuses == [200]

    def test_blank_error_resolves(self, listener: CallbackListener) -> None:
        _send_later(listener.port, "/callback?error=")
        assert listener.wait(timeout=5) == AuthorizationFailure(error="", description="no details")


class TestIdleConnections:
    def test_idle_peer_does_not_block_redirect(self, listener: CallbackListener) -> None:
        with socket.create_connection(("127.0.0.1", listener.port)):
            statuses: list[int] = []
            t = _send_later(listener.port, "/callback?code=abc123", statuses=statuses)

            outcome = listener.wait(timeout=3)
            t.join(timeout=5)

        assert outcome == AuthorizationCode(code="abc123")
        assert statuses == [200]

    def test_idle_peer_does_not_delay_timeout(self) -> None:
        listener = CallbackListener("http://127.0.0.1:0")
        port = listener.port
        with socket.create_connection(("127.0.0.1", port)):
            started = time.monotonic()
            with pytest.raises(AuthorizationTimeoutError):
                listener.wait(timeout=0.5)
            elapsed = time.monotonic() - started

        assert elapsed < 2.5
        assert _port_is_free(port)


class TestExpectedState:
    def test_mismatched_state_is_ignored(self) -> None:
        with CallbackListener("http://127.0.0.1:0", expected_state="good") as listener:
            statuses: list[int] = []
            t = _send_later(
                listener.port,
                "/?code=forged&state=bad",
                "/?code=real&state=good",
                statuses=statuses,
            )
            outcome = listener.wait(timeout=5)
            t.join(timeout=5)

        assert outcome == AuthorizationCode(code="real")
        assert statuses == [400, 200]

    def test_error_without_state_is_accepted(self) -> None:
        with CallbackListener("http://127.0.0.1:0", expected_state="good") as listener:
            _send_later(listener.port, "/?error=access_denied")
            outcome = listener.wait(timeout=5)

        assert isinstance(outcome, AuthorizationFailure)
        assert outcome.error == "access_denied"


class TestListenerLifecycle:
    def test_ephemeral_port_in_redirect_uri(self, listener: CallbackListener) -> None:
        assert listener.port > 0
        assert listener.redirect_uri == f"http://127.0.0.1:{listener.port}/callback"

    def test_bind_conflict(self) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]

            with pytest.raises(ListenerBindError) as exc_info:
                CallbackListener(f"http://127.0.0.1:{port}")

        assert exc_info.value.address == ("127.0.0.1", port)

    def test_timeout_releases_port(self) -> None:
        listener = CallbackListener("http://127.0.0.1:0")
        port = listener.port

        with pytest.raises(AuthorizationTimeoutError):
            listener.wait(timeout=0.2)

        assert _port_is_free(port)

    def test_cancel_from_another_thread(self) -> None:
        listener = CallbackListener("http://127.0.0.1:0")
        port = listener.port
        threading.Timer(0.2, listener.cancel).start()

        with pytest.raises(AuthorizationCancelledError):
            listener.wait(timeout=5)

        assert _port_is_free(port)

    def test_success_releases_port(self, listener: CallbackListener) -> None:
        port = listener.port
        _send_later(port, "/?code=abc")
        listener.wait(timeout=5)
        assert _port_is_free(port)

    def test_wait_twice_raises(self, listener: CallbackListener) -> None:
        _send_later(listener.port, "/?code=abc")
        listener.wait(timeout=5)
        with pytest.raises(RuntimeError):
            listener.wait(timeout=1)

    def test_close_without_wait_releases_port(self) -> None:
        listener = CallbackListener("http://127.0.0.1:0")
        port = listener.port
        listener.close()
        listener.close()
        assert _port_is_free(port)

    def test_cancel_before_wait(self) -> None:
        listener = CallbackListener("http://127.0.0.1:0")
        listener.cancel()
        with pytest.raises(AuthorizationCancelledError):
            listener.wait(timeout=1)
