"""Tests for the rate-limit aware fetcher, using httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from docdeck.config import FetchConfig
from docdeck.errors import FetchStatusError
from docdeck.fetch.fetcher import Fetcher


def _scripted(statuses: list[int], body: str = "<html></html>"):
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        status = statuses[min(len(calls), len(statuses)) - 1]
        return httpx.Response(status, text=body if status == 200 else "")

    return handler, calls


def test_rate_limited_fetch_retries_until_success():
    handler, calls = _scripted([429, 429, 429, 200], body="<p>doc</p>")
    sleeps: list[float] = []
    fetcher = Fetcher(FetchConfig(), transport=httpx.MockTransport(handler), sleep=sleeps.append)

    result = fetcher.fetch("https://pkg.go.dev/io")

    assert result.text == "<p>doc</p>"
    assert result.error is None
    assert result.status_code == 200
    assert result.attempts == 4
    assert len(calls) == 4
    assert sleeps == [0.5, 0.5, 0.5]


def test_unexpected_status_is_fatal():
    handler, _ = _scripted([404])
    fetcher = Fetcher(FetchConfig(), transport=httpx.MockTransport(handler), sleep=lambda _: None)

    with pytest.raises(FetchStatusError) as excinfo:
        fetcher.fetch("https://pkg.go.dev/missing")

    assert excinfo.value.status_code == 404


def test_transport_error_is_returned_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = Fetcher(FetchConfig(), transport=httpx.MockTransport(handler), sleep=lambda _: None)

    result = fetcher.fetch("https://pkg.go.dev/io")

    assert result.text is None
    assert result.status_code is None
    assert result.error.startswith("ConnectError:")


def test_max_attempts_turns_rate_limit_into_task_error():
    handler, calls = _scripted([429])
    cfg = FetchConfig(max_attempts=2, rate_limit_delay_seconds=0.01)
    sleeps: list[float] = []
    fetcher = Fetcher(cfg, transport=httpx.MockTransport(handler), sleep=sleeps.append)

    result = fetcher.fetch("https://pkg.go.dev/io")

    assert result.text is None
    assert result.error.startswith("RetryExhaustedError:")
    assert result.attempts == 2
    assert len(calls) == 2
    assert sleeps == [0.01]


def test_user_agent_header_is_sent():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers["User-Agent"]
        return httpx.Response(200, text="ok")

    with Fetcher(FetchConfig(user_agent="docdeck-test"), transport=httpx.MockTransport(handler)) as fetcher:
        fetcher.fetch("https://pkg.go.dev/io")

    assert seen["ua"] == "docdeck-test"
