"""xauth -- OAuth 2.0 PKCE authorization and OAuth 1.0a signing for the X API.

This package implements the authorization side of an X (Twitter) API client:
a PKCE-protected OAuth 2.0 authorization-code flow that captures the browser
redirect on a short-lived local HTTP listener, exchanges the code for tokens
and refreshes them before expiry, plus OAuth 1.0a HMAC-SHA1 request signing
for legacy consumer/access-token credentials.

Typical workflow::

    xauth login                  # authorize in the browser, print the token
    xauth post "hello, world"    # authorize if needed, then post

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Environment-based settings and credential sources.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.1.0"
