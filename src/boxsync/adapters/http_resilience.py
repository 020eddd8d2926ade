"""Async HTTP client with retry, rate limiting and optional response caching.

Both remote systems are reached through :class:`ResilientClient`; the catalog
and the release listing only differ in their :class:`ResilienceConfig`.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from boxsync.config.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)
from boxsync.config.storage import get_http_cache_path

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from types import TracebackType

    from httpx._types import (
        HeaderTypes,
        QueryParamTypes,
        RequestContent,
        RequestData,
        URLTypes,
    )

__all__ = [
    "CacheConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_limiter",
    "build_retry",
    "http_get_resilient",
]

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    params: QueryParamTypes | None
    data: RequestData | None
    content: RequestContent | None
    headers: HeaderTypes | None


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


def build_limiter(ratelimit: RateLimit | None) -> AsyncLimiter | None:
    """Token bucket for ``ratelimit``; its level is wall-clock based, so one
    instance can be shared across separate ``asyncio.run`` loops."""

    if ratelimit is None:
        return None
    return AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds)


def _build_client(config: ResilienceConfig) -> httpx.AsyncClient:
    transport = RetryTransport(retry=build_retry(config.retry))
    headers = dict(config.default_headers or {})
    storage = _build_cache_storage(config.cache)
    if storage is None:
        return httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            follow_redirects=config.follow_redirects,
            headers=headers,
            transport=transport,
        )
    return AsyncCacheClient(
        base_url=config.base_url or "",
        timeout=config.timeout_seconds,
        follow_redirects=config.follow_redirects,
        headers=headers,
        transport=transport,
        storage=storage,
    )


def _build_cache_storage(config: CacheConfig | None) -> AsyncSqliteStorage | None:
    if config is None or not config.enabled:
        return None
    if config.backend == "sqlite":
        database_path = config.sqlite_path or str(get_http_cache_path())
    elif config.backend == "memory":
        database_path = ":memory:"
    else:
        msg = f"Unsupported cache backend: {config.backend}"
        raise ValueError(msg)
    return AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.default_ttl_seconds,
        refresh_ttl_on_access=config.refresh_ttl_on_access,
    )


class ResilientClient:
    """One short-lived async client per logical operation.

    Every request waits for the rate limiter (when configured); retries and
    backoff happen inside the transport, so callers see a single response or
    the final ``httpx.HTTPError``.

    The limiter outlives the client: owners that open many short-lived clients
    assign their own :attr:`limiter` so the budget is shared across calls.
    """

    def __init__(self, config: ResilienceConfig, *, limiter: AsyncLimiter | None = None) -> None:
        self.config = config
        self.limiter = limiter if limiter is not None else build_limiter(config.ratelimit)
        self._client = _build_client(config)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        await self._throttle()
        response = await self._client.request(method, url, **kwargs)
        log.debug("[%s] %s %s -> %s", self.config.name, method, url, response.status_code)
        return response

    async def get(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> AsyncIterator[httpx.Response]:
        """Send a request and yield the response before its body is read."""

        await self._throttle()
        async with self._client.stream(method, url, **kwargs) as response:
            yield response

    async def _throttle(self) -> None:
        if self.limiter is not None:
            await self.limiter.acquire()


async def http_get_resilient(
    config: ResilienceConfig,
    url: URLTypes,
    *,
    client_factory: Callable[[ResilienceConfig], ResilientClient] = ResilientClient,
    **kwargs: Unpack[RequestOptions],
) -> httpx.Response:
    async with client_factory(config) as client:
        return await client.get(url, **kwargs)
