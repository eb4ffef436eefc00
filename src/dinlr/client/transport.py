"""HTTP transport for the Dinlr API.

:class:`HttpTransport` is the only part of dinlr that performs network
I/O. It wraps :class:`httpx.Client` and exposes a single
:meth:`~HttpTransport.execute` call returning ``(status_code, body)``,
leaving status interpretation and caching to
:class:`~dinlr.client.client.DinlrClient`.

Transient failures (5xx responses, connection and timeout errors) are
retried with exponential backoff: 1 s, 2 s, 4 s, ...
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from dinlr import __version__
from dinlr.exceptions import ConnectionError_
from dinlr.models import ClientConfig
from dinlr.output import get_output


class HttpTransport:
    """Blocking transport backed by a pooled :class:`httpx.Client`.

    Args:
        config: Client configuration (base URL, API key, request settings).
        http_client: Pre-built :class:`httpx.Client` to use instead of
            creating one, e.g. one with an :class:`httpx.MockTransport`.
        sleep: Function used to wait between retries.
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: Optional[httpx.Client] = None,
        sleep=time.sleep,
    ) -> None:
        self._config = config
        self._sleep = sleep
        self._client = http_client or httpx.Client(
            base_url=config.api_url,
            timeout=config.request.timeout,
            verify=config.request.verify_ssl,
            follow_redirects=True,
        )
        self._headers = {
            "Authorization": f"Bearer {config.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": f"dinlr-python/{__version__}",
        }

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def execute(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
    ) -> tuple[int, Any]:
        """Send one request and return ``(status_code, decoded_body)``.

        GET parameters are sent as the query string; for every other
        method they are sent as the JSON body. The body is decoded from
        JSON when possible, returned as text otherwise, and is ``None``
        for an empty response.

        Raises:
            ConnectionError_: On network / timeout errors after all retries.
        """
        method = method.upper()
        kwargs: dict[str, Any] = {"headers": self._headers}
        if params:
            if method == "GET":
                kwargs["params"] = params
            else:
                kwargs["json"] = params

        response = self._send_with_retry(method, endpoint, kwargs)
        return response.status_code, _decode_body(response)

    def _send_with_retry(
        self,
        method: str,
        endpoint: str,
        kwargs: dict[str, Any],
    ) -> httpx.Response:
        max_retries = self._config.request.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                response = self._client.request(method, endpoint, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt >= max_retries:
                    raise ConnectionError_(
                        f"Connection failed after {max_retries + 1} attempts: {exc}"
                    ) from exc
                delay = 2**attempt
                output.debug(
                    f"Connection error: {exc}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                self._sleep(delay)
                continue

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2**attempt
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                self._sleep(delay)
                continue

            return response

        raise AssertionError("unreachable")  # pragma: no cover


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
