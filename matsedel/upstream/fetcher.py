"""
Upstream Fetcher Module
=======================

Provides HTTP requests against upstream menu services with retries on
transient failures, plus an order-preserving bounded fan-out helper.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx

from matsedel.core.errors import ParseError, UpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_USER_AGENT = "Matsedel/0.1"

# Status codes treated as transient failures (timeouts and gateway errors)
DEFAULT_RETRY_ON: frozenset[int] = frozenset({408, 500, 502, 503, 504, 524})


@dataclass(frozen=True)
class FetchOptions:
    """Retry behaviour for a single upstream request."""

    max_attempts: int = 3
    backoff: float = 0.25  # seconds, multiplied by the attempt number
    retry_on: frozenset[int] = field(default_factory=lambda: DEFAULT_RETRY_ON)

    def __post_init__(self) -> None:
        """Validate the retry settings."""
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1 (got {self.max_attempts})")
        if self.backoff < 0:
            raise ValueError(f"backoff must be a non-negative number (got {self.backoff})")


class Fetcher:
    """
    HTTP client for upstream menu services.

    Features:
    - Retries on configurable status codes and on transport errors
    - Linearly growing backoff between attempts
    - Sends a fixed User-Agent with every request

    Every request opens its own client, so concurrent branches never share
    connection state.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        options: FetchOptions | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.options = options or FetchOptions()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        options: FetchOptions | None = None,
    ) -> httpx.Response:
        """
        Perform a request, retrying while the upstream keeps failing.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Extra request headers
            params: Query string parameters
            options: Retry settings overriding the fetcher defaults

        Returns:
            The first response whose status is not retried (e.g. 200 or 404)

        Raises:
            UpstreamError: If every attempt failed
        """
        options = options or self.options
        request_headers = {"User-Agent": self.user_agent, **(headers or {})}

        last_status: int | None = None
        for attempt in range(1, options.max_attempts + 1):
            logger.debug(f"{method} {url} (attempt {attempt}/{options.max_attempts})")
            try:
                async with self._client() as client:
                    response = await client.request(
                        method,
                        url,
                        headers=request_headers,
                        params=params,
                    )
                    await response.aread()
            except httpx.TimeoutException:
                logger.warning(
                    f"Timeout requesting {url} (attempt {attempt}/{options.max_attempts})"
                )
            except httpx.TransportError as e:
                logger.warning(
                    f"Transport error requesting {url}: {e} "
                    f"(attempt {attempt}/{options.max_attempts})"
                )
            else:
                if response.status_code not in options.retry_on:
                    return response
                last_status = response.status_code
                logger.warning(
                    f"Upstream answered {response.status_code} for {url} "
                    f"(attempt {attempt}/{options.max_attempts})"
                )

            if attempt < options.max_attempts:
                await asyncio.sleep(options.backoff * attempt)

        logger.error(f"Giving up on {url} after {options.max_attempts} attempts")
        raise UpstreamError(
            f"http request failed after {options.max_attempts} attempts",
            status_code=last_status,
            attempts=options.max_attempts,
        )

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Shortcut for a GET request."""
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """Shortcut for a POST request."""
        return await self.request("POST", url, **kwargs)

    async def get_json(self, url: str, **kwargs: Any) -> Any:
        """GET a URL and decode its JSON body."""
        return decode_json(await self.get(url, **kwargs))

    async def post_json(self, url: str, **kwargs: Any) -> Any:
        """POST to a URL and decode its JSON body."""
        return decode_json(await self.post(url, **kwargs))


def decode_json(response: httpx.Response) -> Any:
    """
    Decode a JSON response body.

    Raises:
        UpstreamError: If the upstream answered with an error status
        ParseError: If the body is not valid JSON
    """
    if not response.is_success:
        raise UpstreamError(
            f"upstream answered {response.status_code} for {response.request.url}",
            status_code=response.status_code,
        )
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"invalid JSON from {response.request.url}: {e}") from e


async def gather_ordered(
    awaitables: Iterable[Awaitable[T]],
    concurrency: int | None = None,
) -> list[T]:
    """
    Await many operations jointly, bounding how many run at once.

    Results are returned in input order regardless of completion order, and
    the first failure fails the whole group.

    Args:
        awaitables: Operations to run
        concurrency: Maximum simultaneous operations (unbounded if None)

    Returns:
        Results in the same order as the input
    """
    if concurrency is None:
        return list(await asyncio.gather(*awaitables))

    semaphore = asyncio.Semaphore(concurrency)

    async def run_with_semaphore(awaitable: Awaitable[T]) -> T:
        async with semaphore:
            return await awaitable

    return list(await asyncio.gather(*(run_with_semaphore(a) for a in awaitables)))
