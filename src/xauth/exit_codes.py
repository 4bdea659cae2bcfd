"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~xauth.exceptions.XAuthError` subclass.
Shell wrappers can inspect the exit code to tell a rejected authorization
apart from a network failure without parsing stderr.

Example::

    $ xauth login
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the user denied the authorization request
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or values."""

EXIT_AUTH_FAILURE = 3
"""Authorization, token exchange, or token refresh failed."""

EXIT_API_ERROR = 5
"""The X API answered with a non-success status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CANCELLED = 130
"""The user interrupted the command (Ctrl-C)."""
