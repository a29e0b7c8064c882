"""Rate-limited, retrying async HTTP client shared by panel adapters."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

from panelsync.config.http_resilience import (
    IDEMPOTENT_METHODS,
    RateLimit,
    ResilienceConfig,
    ResponseHook,
    RetryPolicy,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

    from httpx._types import QueryParamTypes, RequestData, TimeoutTypes, URLTypes

__all__ = [
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_retry",
]

log = getLogger(__name__)

type SessionRenewal = Callable[[], Awaitable[None]]


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


class RequestOptions(TypedDict, total=False):
    data: RequestData | None
    params: QueryParamTypes | None
    timeout: TimeoutTypes


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: dict[str, str]
    event_hooks: dict[str, list[ResponseHook]]
    transport: httpx.AsyncBaseTransport


class ResilientClient:
    """Panel HTTP client with retries on reads, an optional rate limit and session renewal.

    The underlying ``httpx.AsyncClient`` keeps cookies, so the session cookie set
    by a panel login is reused for every later request on the same instance.
    When ``renew_session`` is set and a read answers with one of
    ``config.session_expired_statuses``, the session is renewed once and the
    read is sent again. Writes are returned as they are: a rejected update must
    not reach the panel twice.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        renew_session: SessionRenewal | None = None,
    ) -> None:
        self.config = config
        self.renew_session = renew_session
        self._renewing = False
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        client_kwargs: AsyncClientOptions = {
            "timeout": config.timeout_seconds,
            "transport": RetryTransport(
                transport=httpx.AsyncHTTPTransport(verify=config.verify),
                retry=build_retry(config.retry),
            ),
        }
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if config.default_headers:
            client_kwargs["headers"] = dict(config.default_headers)
        if config.response_hooks:
            client_kwargs["event_hooks"] = {"response": list(config.response_hooks)}

        self._client = httpx.AsyncClient(**client_kwargs)

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
        response = await self._send(method, url, kwargs)
        if self.renew_session is None or not self._session_expired(method, response):
            return response

        log.info("Session on %s expired, logging in again", self.config.name)
        await response.aclose()
        self._renewing = True
        try:
            await self.renew_session()
        finally:
            self._renewing = False
        return await self._send(method, url, kwargs)

    async def get(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    def _session_expired(self, method: str, response: httpx.Response) -> bool:
        return (
            not self._renewing
            and method.upper() in IDEMPOTENT_METHODS
            and response.status_code in self.config.session_expired_statuses
        )

    async def _send(
        self, method: str, url: URLTypes, options: RequestOptions
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.request(method, url, **options)
        async with self._limiter:
            return await self._client.request(method, url, **options)
