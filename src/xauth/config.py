"""Configuration from the environment and credential source resolution.

xauth keeps no configuration files and never writes secrets to disk.
Settings come from environment variables:

===========================  ==============================================
Variable                     Setting
===========================  ==============================================
``X_CLIENT_ID``              OAuth 2.0 client id
``X_CLIENT_SECRET``          OAuth 2.0 client secret
``X_REDIRECT_URI``           Redirect URI served by the callback listener
``X_SCOPES``                 Space-separated scopes, e.g. ``tweet.read``
``X_CALLBACK_TIMEOUT``       Seconds to wait for the browser redirect
``X_REQUEST_TIMEOUT``        HTTP timeout in seconds
``X_API_BASE_URL``           X API base URL
``X_CONSUMER_KEY``           OAuth 1.0a consumer key
``X_CONSUMER_SECRET``        OAuth 1.0a consumer secret
``X_ACCESS_TOKEN``           OAuth 1.0a access token
``X_ACCESS_TOKEN_SECRET``    OAuth 1.0a access token secret
===========================  ==============================================

Any credential variable may instead be given as ``<NAME>_SOURCE`` holding
a source descriptor understood by :func:`resolve_credential`, e.g.
``X_CLIENT_SECRET_SOURCE=file:~/.secrets/x_client_secret``.
"""

from __future__ import annotations

import getpass
import logging
import os
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from xauth.exceptions import ConfigError
from xauth.models import ClientSettings, LegacyCredentials

logger = logging.getLogger(__name__)

_LEGACY_VARS = {
    "consumer_key": "X_CONSUMER_KEY",
    "consumer_secret": "X_CONSUMER_SECRET",
    "access_token": "X_ACCESS_TOKEN",
    "access_token_secret": "X_ACCESS_TOKEN_SECRET",
}


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Args:
        source: The source descriptor string.

    Returns:
        The resolved credential string.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    raise ConfigError(
        f"Unknown credential source: '{source}'. "
        "Supported formats: env:VAR, file:/path, prompt"
    )


def _credential(env: Mapping[str, str], name: str) -> Optional[str]:
    """Read *name* directly, or resolve ``<name>_SOURCE``."""
    value = env.get(name)
    if value:
        return value
    source = env.get(f"{name}_SOURCE")
    if source:
        logger.debug("Resolving %s from %s", name, source.split(":", 1)[0])
        return resolve_credential(source)
    return None


def _number(env: Mapping[str, str], name: str) -> Optional[float]:
    raw = env.get(name)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds, got '{raw}'") from None


def load_settings(env: Optional[Mapping[str, str]] = None) -> ClientSettings:
    """Build :class:`~xauth.models.ClientSettings` from environment variables.

    Unset variables keep the model defaults. OAuth 1.0a credentials are
    taken only when all four are present.

    Args:
        env: Mapping to read instead of ``os.environ``.

    Returns:
        The validated settings.

    Raises:
        ConfigError: If a value is invalid, a credential source cannot be
            resolved, or the OAuth 1.0a credentials are incomplete.
    """
    env = os.environ if env is None else env
    values: dict[str, Any] = {}

    client_id = _credential(env, "X_CLIENT_ID")
    if client_id:
        values["client_id"] = client_id
    client_secret = _credential(env, "X_CLIENT_SECRET")
    if client_secret:
        values["client_secret"] = client_secret

    for field, name in (
        ("redirect_uri", "X_REDIRECT_URI"),
        ("scopes", "X_SCOPES"),
        ("api_base_url", "X_API_BASE_URL"),
    ):
        if env.get(name):
            values[field] = env[name]

    callback_timeout = _number(env, "X_CALLBACK_TIMEOUT")
    if callback_timeout is not None:
        values["callback_timeout"] = callback_timeout
    request_timeout = _number(env, "X_REQUEST_TIMEOUT")
    if request_timeout is not None:
        values["request_timeout"] = request_timeout

    legacy = {field: _credential(env, name) for field, name in _LEGACY_VARS.items()}
    present = [field for field, value in legacy.items() if value]
    if present and len(present) < len(legacy):
        missing = ", ".join(_LEGACY_VARS[f] for f in legacy if not legacy[f])
        raise ConfigError(f"Incomplete OAuth 1.0a credentials: missing {missing}")
    if present:
        values["legacy"] = LegacyCredentials(**legacy)

    try:
        return ClientSettings(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
