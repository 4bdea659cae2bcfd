"""Shared test fixtures for xauth.

Provides reusable fixtures for isolating the environment, managing output
state, building settings, and running CLI commands. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import socket
from typing import Any

import pytest

from xauth.models import ClientSettings, LegacyCredentials
from xauth.output import OutputFormat, OutputManager, reset_output, set_output

ENV_VARS = [
    "X_CLIENT_ID",
    "X_CLIENT_SECRET",
    "X_REDIRECT_URI",
    "X_SCOPES",
    "X_CALLBACK_TIMEOUT",
    "X_REQUEST_TIMEOUT",
    "X_API_BASE_URL",
    "X_CONSUMER_KEY",
    "X_CONSUMER_SECRET",
    "X_ACCESS_TOKEN",
    "X_ACCESS_TOKEN_SECRET",
]

# Reference credentials from the X developer documentation's signing example.
DOCS_CREDENTIALS = LegacyCredentials(
    consumer_key="xvz1evFS4wEEPTGEFPHBog",
    consumer_secret="kAcSOqF21Fu85e7zjz7ZN2U4ZRhfV3WpwPAoE3Z7kBw",
    access_token="370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb",
    access_token_secret="LswwdoUaIvS8ltyTt5jkRh4J50vUPVVHtR2YPi5kE",
)


def find_free_port() -> int:
    """Find a free TCP port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def make_settings(**kwargs: Any) -> ClientSettings:
    """Build ClientSettings with test defaults overridden by kwargs."""
    defaults: dict[str, Any] = {
        "client_id": "test-client",
        "client_secret": "test-secret",
        "redirect_uri": "http://127.0.0.1:0/callback",
        "authorize_endpoint": "https://auth.example.com/authorize",
        "token_endpoint": "https://auth.example.com/token",
        "api_base_url": "https://api.example.com/2",
        "callback_timeout": 5.0,
    }
    defaults.update(kwargs)
    return ClientSettings(**defaults)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during a
    test, the cached references become stale once the test finishes.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every X_* variable xauth reads (and their _SOURCE forms)."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
        monkeypatch.delenv(f"{var}_SOURCE", raising=False)
    return monkeypatch


@pytest.fixture
def legacy_env(clean_env: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Environment holding only the reference OAuth 1.0a credentials."""
    clean_env.setenv("X_CONSUMER_KEY", DOCS_CREDENTIALS.consumer_key)
    clean_env.setenv("X_CONSUMER_SECRET", DOCS_CREDENTIALS.consumer_secret)
    clean_env.setenv("X_ACCESS_TOKEN", DOCS_CREDENTIALS.access_token)
    clean_env.setenv("X_ACCESS_TOKEN_SECRET", DOCS_CREDENTIALS.access_token_secret)
    return clean_env


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format output manager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
