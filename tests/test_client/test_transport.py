"""Tests for HttpTransport: request encoding, body decoding and retries."""

from __future__ import annotations

import json

import httpx
import pytest

from dinlr.client import HttpTransport
from dinlr.exceptions import ConnectionError_
from dinlr.models import ClientConfig
from dinlr.output import OutputManager, reset_output, set_output


def _make_config(max_retries: int = 3) -> ClientConfig:
    return ClientConfig(
        api_key="sk_test",
        api_url="https://api.example.com/v1/",
        request={"max_retries": max_retries, "timeout": 5},
    )


def _make_transport(handler, max_retries: int = 3, sleeps: list | None = None) -> HttpTransport:
    config = _make_config(max_retries)
    http_client = httpx.Client(base_url=config.api_url, transport=httpx.MockTransport(handler))
    sleep = sleeps.append if sleeps is not None else (lambda s: None)
    return HttpTransport(config, http_client=http_client, sleep=sleep)


@pytest.fixture(autouse=True)
def _clean_output():
    """Reset the global output manager between tests."""
    set_output(OutputManager(no_color=True, quiet=True))
    yield
    reset_output()


class TestConfig:
    def test_trailing_slash_is_stripped(self) -> None:
        assert _make_config().api_url == "https://api.example.com/v1"

    def test_context_manager_closes_client(self) -> None:
        transport = _make_transport(lambda r: httpx.Response(200))
        with transport:
            pass
        assert transport._client.is_closed


class TestExecute:
    def test_get_sends_query_params(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        with _make_transport(handler) as transport:
            status, body = transport.execute("GET", "rest_1/onlineorder/items", {"page": 2})

        assert status == 200
        assert body == {"ok": True}
        assert seen[0].url.path == "/v1/rest_1/onlineorder/items"
        assert seen[0].url.params["page"] == "2"
        assert seen[0].content == b""

    def test_post_sends_json_body(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"data": {"id": "x"}})

        with _make_transport(handler) as transport:
            status, _ = transport.execute("post", "rest_1/onlineorder/customers", {"name": "A"})

        assert status == 201
        assert seen[0].method == "POST"
        assert json.loads(seen[0].content) == {"name": "A"}
        assert not seen[0].url.params

    def test_error_status_is_returned(self) -> None:
        with _make_transport(lambda r: httpx.Response(404, json={"message": "gone"})) as t:
            assert t.execute("GET", "x") == (404, {"message": "gone"})

    def test_empty_body_decodes_to_none(self) -> None:
        with _make_transport(lambda r: httpx.Response(204)) as transport:
            assert transport.execute("DELETE", "x") == (204, None)

    def test_text_body_is_returned_as_text(self) -> None:
        with _make_transport(lambda r: httpx.Response(200, text="plain")) as transport:
            assert transport.execute("GET", "x") == (200, "plain")


class TestRetry:
    def test_retries_server_errors_with_backoff(self) -> None:
        responses = iter([503, 502, 200])
        sleeps: list[float] = []

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(responses)
            return httpx.Response(status, json={"status": status})

        with _make_transport(handler, max_retries=3, sleeps=sleeps) as transport:
            status, body = transport.execute("GET", "x")

        assert status == 200
        assert sleeps == [1, 2]

    def test_server_error_returned_after_last_attempt(self) -> None:
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(500, json={"message": "down"})

        with _make_transport(handler, max_retries=2) as transport:
            status, _ = transport.execute("GET", "x")

        assert status == 500
        assert len(attempts) == 3

    def test_client_errors_are_not_retried(self) -> None:
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(400, json={})

        with _make_transport(handler) as transport:
            transport.execute("GET", "x")
        assert len(attempts) == 1

    def test_connection_error_is_retried(self) -> None:
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json=[])

        with _make_transport(handler, max_retries=1) as transport:
            assert transport.execute("GET", "x") == (200, [])
        assert len(attempts) == 2

    def test_connection_error_after_all_attempts(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with _make_transport(handler, max_retries=1) as transport:
            with pytest.raises(ConnectionError_, match="Connection failed after 2 attempts"):
                transport.execute("GET", "x")

    def test_connection_error_exit_code(self) -> None:
        assert ConnectionError_("x").exit_code == 6

    def test_retries_are_logged_in_verbose_mode(self, capsys) -> None:
        set_output(OutputManager(no_color=True, verbose=True))
        responses = iter([500, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(next(responses), json={})

        with _make_transport(handler, max_retries=1) as transport:
            transport.execute("GET", "x")

        assert "Server error 500, retrying in 1s (attempt 1/1)" in capsys.readouterr().err
