"""Shared ``httpx`` client with retries, rate limiting and response caching."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheTransport
from httpx_retries import Retry, RetryTransport

from kickoff.config.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
    ShouldCacheHook,
)
from kickoff.config.storage import get_storage_config

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, QueryParamTypes, URLTypes

__all__ = [
    "CacheConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
]

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        backoff_jitter=policy.backoff_jitter,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )


class ResilientClient:
    """One platform's ``httpx.AsyncClient``, used as an async context manager.

    Idempotent requests are retried through ``httpx-retries`` and every request
    waits on the platform's ``aiolimiter`` rate limit. A ``hishel`` sqlite
    cache sits in front of the retries when the config asks for one.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        transport: httpx.AsyncBaseTransport = RetryTransport(retry=build_retry(config.retry))
        if config.cache is not None:
            storage, policy = _cache_components(config.cache)
            # Cache hits are answered before the retry layer sees the request.
            transport = AsyncCacheTransport(
                next_transport=transport, storage=storage, policy=policy
            )
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "", timeout=config.timeout_seconds, transport=transport
        )

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
        if self._limiter is None:
            response = await self._client.request(method, url, **kwargs)
        else:
            async with self._limiter:
                response = await self._client.request(method, url, **kwargs)
        log.debug("%s: %s %s -> %s", self.config.name, method, url, response.status_code)
        return response


class _ShouldCacheResponseFilter(BaseFilter[HishelCacheResponse]):
    """Keep a response only when its decoded JSON passes the predicate."""

    def __init__(self, predicate: ShouldCacheHook) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return False
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return False
        return bool(self._predicate(payload))


def _cache_components(config: CacheConfig) -> tuple[AsyncSqliteStorage, FilterPolicy | None]:
    database_path = config.sqlite_path or get_storage_config().http_cache_path()
    storage = AsyncSqliteStorage(database_path=database_path, default_ttl=config.ttl_seconds)
    if config.should_cache is None:
        return storage, None
    return storage, FilterPolicy(
        response_filters=[_ShouldCacheResponseFilter(config.should_cache)]
    )
