"""
HTTP document fetching.

Documents are fetched with a shared synchronous httpx client. The server
answers with one of three outcomes that the pipeline cares about:

1. 200: the page body becomes the task payload
2. 429: rate limited; the same request is retried after a fixed delay
3. anything else: the page layout or URL list is wrong, which is fatal

Transport failures (DNS, connection resets, timeouts) are per-task errors
and are returned rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Callable

import httpx

from ..config import FetchConfig
from ..errors import FetchStatusError, RetryExhaustedError
from ..logging_utils import log_event

logger = logging.getLogger("docdeck.fetch")


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either text will be populated (success) or error will be populated (failure),
    but never both. status_code may be None for network-level failures.

    Attributes:
        url: The URL that was fetched
        status_code: HTTP status code, or None if request failed before getting response
        text: The response body text, or None on error
        error: Error message if fetch failed, None on success
        attempts: Number of requests sent, including rate-limited ones
    """
    url: str
    status_code: int | None
    text: str | None
    error: str | None
    attempts: int = 1


class Fetcher:
    """Fetches documentation pages, retrying rate-limited requests."""

    def __init__(
        self,
        cfg: FetchConfig,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cfg = cfg
        self._sleep = sleep
        self._client = httpx.Client(
            timeout=cfg.timeout_seconds,
            headers={"User-Agent": cfg.user_agent},
            follow_redirects=True,
            trust_env=cfg.trust_env,
            transport=transport,
        )

    def fetch(self, url: str) -> FetchResult:
        """Fetch `url`, retrying on 429 until success or a transport error.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult with text on success or error message on failure

        Raises:
            FetchStatusError: If the server answers with any status other
                than 200 or 429
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = self._client.get(url)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                return FetchResult(
                    url=url,
                    status_code=None,
                    text=None,
                    error=f"{type(exc).__name__}: {exc}",
                    attempts=attempt,
                )

            if resp.status_code == 200:
                return FetchResult(
                    url=url, status_code=200, text=resp.text, error=None, attempts=attempt
                )

            if resp.status_code != 429:
                raise FetchStatusError(url, resp.status_code)

            max_attempts = self.cfg.max_attempts
            if max_attempts is not None and attempt >= max_attempts:
                exc = RetryExhaustedError(f"rate limited fetch of {url}", attempt)
                return FetchResult(
                    url=url,
                    status_code=429,
                    text=None,
                    error=f"{type(exc).__name__}: {exc}",
                    attempts=attempt,
                )

            log_event(
                logger,
                f"'{url}' rate limited, retrying in {self.cfg.rate_limit_delay_seconds}s",
                level=logging.DEBUG,
                event="fetch_rate_limited",
                url=url,
                attempt=attempt,
            )
            self._sleep(self.cfg.rate_limit_delay_seconds)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
