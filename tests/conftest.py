"""Shared test fixtures for dinlr.

Provides reusable fixtures for isolated config environments, client
construction over an in-process HTTP transport, output state, and running
CLI commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from dinlr.output import OutputFormat, OutputManager, reset_output, set_output


API_URL = "https://api.dinlr.test/v1"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all DINLR_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "DINLR_API_KEY",
        "DINLR_API_URL",
        "DINLR_RESTAURANT_ID",
        "DINLR_DEBUG",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet, colourless OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Client fixtures
# ---------------------------------------------------------------------------


class RecordingHandler:
    """httpx.MockTransport handler that answers from a route table and records requests.

    Routes map ``"METHOD /path"`` (path relative to the API base URL,
    without the query string) to a JSON body or to an ``httpx.Response``.
    Unknown routes answer 404.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        prefix = httpx.URL(API_URL).path
        if path.startswith(prefix):
            path = path[len(prefix):]
        answer = self.routes.get(f"{request.method} {path}")
        if answer is None:
            return httpx.Response(404, json={"message": "Not found"})
        if isinstance(answer, httpx.Response):
            return answer
        if callable(answer):
            return answer(request)
        return httpx.Response(200, json=answer)

    def calls(self, method: str, path: str) -> int:
        """Number of recorded requests for one route."""
        return sum(
            1
            for r in self.requests
            if r.method == method and r.url.path.endswith(path)
        )


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def make_client(handler: RecordingHandler) -> Callable[..., Any]:
    """Factory for a DinlrClient whose transport is served by ``handler``.

    Keyword arguments are merged into the client config dict.
    """
    from dinlr.client import DinlrClient, HttpTransport
    from dinlr.models import ClientConfig

    clients = []

    def _make(**overrides: Any):
        data: dict[str, Any] = {
            "api_key": "sk_test_123",
            "api_url": API_URL,
            "restaurant_id": "rest_1",
            "request": {"max_retries": 0},
        }
        data.update(overrides)
        config = ClientConfig.model_validate(data)
        http_client = httpx.Client(
            base_url=config.api_url, transport=httpx.MockTransport(handler)
        )
        transport = HttpTransport(config, http_client=http_client, sleep=lambda s: None)
        client = DinlrClient(config, transport=transport)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
