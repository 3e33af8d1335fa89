"""Shared fixtures for integration tests.

These tests wire real components (site registry, composition root, httpx
clients, crawlers) together; only the innermost HTTP transport is mocked.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from mangacrawl.infrastructure.config import AppConfig

BUNDLED_SITES = Path(__file__).resolve().parents[2] / "sites"


@pytest.fixture()
def bundled_site_dir() -> Path:
    return BUNDLED_SITES


@pytest.fixture()
def make_config(bundled_site_dir: Path) -> Callable[..., AppConfig]:
    """AppConfig over the bundled profiles; pass sections to override."""

    def _make(**sections: Any) -> AppConfig:
        data: dict[str, Any] = {"sites": {"site_dir": str(bundled_site_dir)}}
        data.update(sections)
        return AppConfig.model_validate(data)

    return _make


def _replay(template: httpx.Response) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            template.status_code, headers=template.headers, content=template.content
        )

    return handler


class SiteServer:
    """Routes requests to handlers keyed by ``(method, host, path)``.

    Unrouted requests answer 404. Every request is kept in ``requests``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str, str], Callable[..., httpx.Response]] = {}
        self._prefixes: list[tuple[str, str, str, Callable[..., httpx.Response]]] = []

    def add(
        self,
        method: str,
        url: str,
        response: httpx.Response | Callable[[httpx.Request], httpx.Response],
        *,
        prefix: bool = False,
    ) -> None:
        target = httpx.URL(url)
        if isinstance(response, httpx.Response):
            handler = _replay(response)
        else:
            handler = response
        if prefix:
            self._prefixes.append((method, target.host, target.path, handler))
        else:
            self._routes[(method, target.host, target.path)] = handler

    def html(self, url: str, body: str) -> None:
        self.add("GET", url, httpx.Response(200, html=body))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.host, request.url.path)
        handler = self._routes.get(key)
        if handler is None:
            for method, host, path, candidate in self._prefixes:
                if (method, host) == key[:2] and key[2].startswith(path):
                    handler = candidate
                    break
        if handler is None:
            return httpx.Response(404)
        return handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def to_host(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]


@pytest.fixture()
def site_server() -> SiteServer:
    return SiteServer()
