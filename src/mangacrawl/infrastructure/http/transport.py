"""httpx-based transport with per-host rate limiting and UA override."""

from __future__ import annotations

from typing import Mapping

import httpx
import structlog

from mangacrawl.domain.exceptions import HttpStatusError, TransportError
from mangacrawl.domain.ports import HttpResponse
from mangacrawl.infrastructure.common.rate_limiter import HostRateLimiter

from .user_agent import UserAgentRotator

log = structlog.get_logger(__name__)


class PoliteTransport(httpx.AsyncBaseTransport):
    """Wraps an httpx transport with rate limiting and User-Agent rotation.

    Calls ``HostRateLimiter.acquire()`` before every request, redirects
    included. When a rotator is set and has a User-Agent, it replaces the
    request's ``User-Agent`` header. Never retries.
    """

    def __init__(
        self,
        wrapped: httpx.AsyncBaseTransport,
        rate_limiter: HostRateLimiter,
        *,
        user_agents: UserAgentRotator | None = None,
    ) -> None:
        self._wrapped = wrapped
        self._rate_limiter = rate_limiter
        self._user_agents = user_agents

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await self._rate_limiter.acquire(str(request.url))

        if self._user_agents is not None:
            user_agent = await self._user_agents.get()
            if user_agent:
                request.headers["User-Agent"] = user_agent

        return await self._wrapped.handle_async_request(request)

    async def aclose(self) -> None:
        await self._wrapped.aclose()


class HttpxTransport:
    """``HttpTransportPort`` implementation over an ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        try:
            resp = await self._client.request(
                method, url, headers=dict(headers or {}), data=data
            )
        except httpx.TimeoutException as exc:
            log.warning("http_timeout", method=method, url=url)
            raise TransportError(f"Timeout while fetching {url}") from exc
        except httpx.TransportError as exc:
            log.warning("http_transport_error", method=method, url=url, error=str(exc))
            raise TransportError(f"Failed to fetch {url}: {exc}") from exc

        return HttpResponse(
            status=resp.status_code,
            url=str(resp.url),
            body=resp.content,
            headers=dict(resp.headers),
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def require_ok(response: HttpResponse, *, context: str = "") -> HttpResponse:
    """Raise ``HttpStatusError`` unless *response* has a 2xx status."""
    if not response.ok:
        message = f"HTTP {response.status} for {response.url}"
        if context:
            message = f"{context}: {message}"
        raise HttpStatusError(response.status, response.url, message)
    return response
