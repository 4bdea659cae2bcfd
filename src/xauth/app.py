"""Typer application and CLI entry point for xauth.

Commands:

* ``xauth login`` -- run the OAuth 2.0 authorization-code flow and print
  the resulting token.
* ``xauth sign METHOD URL`` -- print an OAuth 1.0a ``Authorization``
  header for a request.
* ``xauth post TEXT`` -- publish a post.
* ``xauth me`` -- show the authorized user.

Credentials come from the environment (see :mod:`xauth.config`). The
:func:`main` function is the console-script entry point declared in
``pyproject.toml``; it maps :class:`~xauth.exceptions.XAuthError` to the
error's exit code.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, List, Optional

import typer
from pydantic import ValidationError

from xauth import __version__
from xauth.auth.scopes import format_scopes
from xauth.auth.signing import sign_request
from xauth.client import XClient
from xauth.config import load_settings
from xauth.exceptions import ConfigError, InvalidUsageError, MissingCredentialsError
from xauth.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE
from xauth.models import ClientSettings
from xauth.output import error, format_response, info, print_data, success, suggest
from xauth.plugins.oauth2_auth_code import OAuth2AuthCodePlugin

app = typer.Typer(
    name="xauth",
    help="Authorize and sign X API requests (OAuth 2.0 PKCE and OAuth 1.0a).",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"xauth {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~xauth.output.OutputManager` and configures
    logging (DEBUG with ``--verbose``, errors only otherwise).
    """
    from xauth.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _settings(**overrides: Any) -> ClientSettings:
    """Load settings from the environment and apply non-``None`` CLI overrides."""
    settings = load_settings()
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return settings
    try:
        return ClientSettings.model_validate({**settings.model_dump(), **updates})
    except ValidationError as exc:
        raise ConfigError(f"Invalid option: {exc}") from exc


def _print_url(url: str) -> None:
    info("Open this URL in your browser to authorize xauth:")
    info(url)


def _parse_params(pairs: Optional[List[str]]) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Invalid parameter '{pair}': expected key=value")
        params[key] = value
    return params


@app.command("login")
def login_command(
    scopes: Optional[str] = typer.Option(
        None, "--scopes", "-s", help="Space-separated scopes, e.g. 'tweet.read users.read'."
    ),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="Redirect URI registered for the client."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds to wait for the browser redirect."
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Only print the authorization URL."
    ),
) -> None:
    """Authorize with OAuth 2.0 and print the token.

    Requires X_CLIENT_ID (and X_CLIENT_SECRET for confidential clients).
    The token is written to stdout and not stored anywhere.
    """
    settings = _settings(scopes=scopes, redirect_uri=redirect_uri, callback_timeout=timeout)
    if not settings.has_oauth2:
        suggest("Set X_CLIENT_ID (and X_CLIENT_SECRET) to your app's OAuth 2.0 credentials")
        raise MissingCredentialsError("login requires an OAuth 2.0 client id (X_CLIENT_ID)")

    plugin = OAuth2AuthCodePlugin(settings, display=_print_url if no_browser else None)
    try:
        token = plugin.get_token()
    finally:
        plugin.close()

    success(f"Authorized ({format_scopes(token.scope) or 'no scopes'})")
    format_response(token.model_dump(mode="json"))


@app.command("sign")
def sign_command(
    method: str = typer.Argument(help="HTTP method, e.g. POST."),
    url: str = typer.Argument(help="Request URL without query string."),
    param: Optional[List[str]] = typer.Option(
        None, "--param", "-d", help="Request parameter as key=value (repeatable)."
    ),
    nonce: Optional[str] = typer.Option(None, "--nonce", help="Fixed nonce."),
    timestamp: Optional[int] = typer.Option(None, "--timestamp", help="Fixed Unix timestamp."),
) -> None:
    """Print the OAuth 1.0a Authorization header for a request.

    Requires X_CONSUMER_KEY, X_CONSUMER_SECRET, X_ACCESS_TOKEN and
    X_ACCESS_TOKEN_SECRET.
    """
    settings = load_settings()
    if settings.legacy is None:
        raise MissingCredentialsError(
            "sign requires X_CONSUMER_KEY, X_CONSUMER_SECRET, X_ACCESS_TOKEN "
            "and X_ACCESS_TOKEN_SECRET"
        )
    header = sign_request(
        method,
        url,
        settings.legacy,
        _parse_params(param),
        nonce=nonce,
        timestamp=timestamp,
    )
    print_data(header)


@app.command("post")
def post_command(
    text: str = typer.Argument(help="Post text (at most 280 characters)."),
) -> None:
    """Publish a post as the authorized user."""
    settings = load_settings()
    with XClient(settings) as client:
        response = client.post_tweet(text)
    success("Posted")
    format_response(response.data)


@app.command("me")
def me_command() -> None:
    """Show the authorized user."""
    settings = load_settings()
    with XClient(settings) as client:
        response = client.get_me()
    format_response(response.data)


def main() -> None:
    """CLI entry point invoked by the ``xauth`` console script.

    :class:`~xauth.exceptions.XAuthError` instances cause a clean exit with
    the error's ``exit_code``; Ctrl-C exits with 130.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from xauth.exceptions import XAuthError

        if isinstance(exc, XAuthError):
            error(str(exc))
            sys.exit(exc.exit_code)
        logging.getLogger(__name__).debug("Unexpected error", exc_info=True)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
