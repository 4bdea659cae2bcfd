"""Exception hierarchy for xauth.

All exceptions inherit from :class:`XAuthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`xauth.exit_codes`.
The top-level error handler in :func:`xauth.app.main` catches
``XAuthError`` and exits with the appropriate code.

Diagnostic detail is never discarded: provider error codes, descriptions,
HTTP status codes and response bodies are kept on the exception instances
and in their messages.

Subclass hierarchy::

    XAuthError (exit 1)
    +-- InvalidUsageError            (exit 2)
    +-- ConfigError                  (exit 1)
    +-- EntropyError                 (exit 1)
    +-- InvalidScopeError            (exit 2)
    +-- MissingCredentialsError      (exit 3)
    +-- AuthError                    (exit 3)
    |   +-- ListenerBindError
    |   +-- AuthorizationTimeoutError
    |   +-- AuthorizationCancelledError
    |   +-- AuthorizationDeniedError
    |   +-- TokenExchangeError
    |   +-- TokenDecodeError
    |   +-- TokenRefreshError
    +-- ApiError                     (exit 5)
    +-- ConnectionError_             (exit 6)
"""

from __future__ import annotations

from xauth.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class XAuthError(Exception):
    """Base exception for all xauth errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`xauth.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(XAuthError):
    """Raised for invalid CLI arguments or request input (e.g. an over-long tweet)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(XAuthError):
    """Raised for configuration problems (missing variables, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class EntropyError(XAuthError):
    """Raised when the operating system cannot supply secure random bytes.

    There is no fallback: PKCE verifiers, states and OAuth 1.0a nonces must
    come from a cryptographically secure source.
    """

    exit_code = EXIT_GENERIC_FAILURE


class InvalidScopeError(XAuthError):
    """Raised when a scope string contains a token that names no known scope.

    Attributes:
        token: The offending scope token, exactly as it appeared.
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, token: str):
        super().__init__(f"Invalid scope: '{token}'")
        self.token = token


class MissingCredentialsError(XAuthError):
    """Raised when an operation needs a credential set the client was not given."""

    exit_code = EXIT_AUTH_FAILURE


class AuthError(XAuthError):
    """Raised when authorization or token handling fails."""

    exit_code = EXIT_AUTH_FAILURE


class ListenerBindError(AuthError):
    """Raised when the local callback listener cannot bind its address.

    Attributes:
        address: The ``(host, port)`` pair that could not be bound.
    """

    def __init__(self, address: tuple[str, int], reason: str):
        host, port = address
        super().__init__(f"Cannot listen on {host}:{port}: {reason}")
        self.address = address


class AuthorizationTimeoutError(AuthError):
    """Raised when no authorization redirect arrives within the timeout."""


class AuthorizationCancelledError(AuthError):
    """Raised when the caller cancels a pending authorization."""


class AuthorizationDeniedError(AuthError):
    """Raised when the provider redirects back with an ``error`` parameter.

    Attributes:
        error: The provider's error code, verbatim (e.g. ``access_denied``).
        description: The provider's ``error_description``, verbatim.
    """

    def __init__(self, error: str, description: str):
        super().__init__(f"Authorization denied: {error} - {description}")
        self.error = error
        self.description = description


class TokenExchangeError(AuthError):
    """Raised when the token endpoint rejects an authorization-code exchange.

    Attributes:
        status_code: HTTP status returned by the token endpoint.
        body: Raw response body.
    """

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Token exchange failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class TokenDecodeError(AuthError):
    """Raised when a successful token response cannot be decoded into a token."""


class TokenRefreshError(AuthError):
    """Raised when a token refresh is rejected or cannot be attempted.

    Attributes:
        body: Raw response body, or the reason the refresh was not sent.
    """

    def __init__(self, body: str):
        super().__init__(f"Token refresh failed: {body}")
        self.body = body


class ApiError(XAuthError):
    """Raised when the X API answers with a non-success status.

    Attributes:
        status_code: HTTP status of the response.
        title: Error title reported by the API, if any.
        detail: Error detail reported by the API, if any.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, status_code: int, title: str = "", detail: str = ""):
        message = f"HTTP {status_code}"
        if title:
            message += f": {title}"
        if detail:
            message += f" - {detail}"
        super().__init__(message)
        self.status_code = status_code
        self.title = title
        self.detail = detail


class ConnectionError_(XAuthError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR
