"""Shared test fixtures for the mangacrawl test suite."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Mapping, Union

import pytest

from mangacrawl.domain.entities import DedupMode, RenderMode
from mangacrawl.domain.ports import HttpResponse
from mangacrawl.domain.sites import (
    ChapterSelectors,
    EntrySelectors,
    ListingConfig,
    ListingEndpoint,
    PageSelectors,
    SiteProfile,
)
from mangacrawl.infrastructure.config.schema import PreferencesConfig
from mangacrawl.infrastructure.preferences import StaticPreferences

BASE_URL = "https://manga.example.com"

Handler = Union[HttpResponse, Callable[[str, str, dict[str, str], Any], HttpResponse]]


# ---------------------------------------------------------------------------
# Transport double
# ---------------------------------------------------------------------------


class FakeTransport:
    """In-memory ``HttpTransportPort`` with scripted responses.

    Unrouted requests answer 404. Every call is recorded in ``calls`` as
    ``(method, url, headers, data)``.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.calls: list[tuple[str, str, dict[str, str], Any]] = []

    def route(self, method: str, url: str, handler: Handler) -> None:
        self.routes[(method, url)] = handler

    def html(
        self, url: str, body: str, *, final_url: str | None = None, method: str = "GET"
    ) -> None:
        self.route(
            method,
            url,
            HttpResponse(status=200, url=final_url or url, body=body.encode("utf-8")),
        )

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        sent_headers = dict(headers or {})
        self.calls.append((method, url, sent_headers, data))
        handler = self.routes.get((method, url))
        if handler is None:
            return HttpResponse(status=404, url=url)
        if isinstance(handler, HttpResponse):
            return handler
        return handler(method, url, sent_headers, data)

    def urls(self, method: str | None = None) -> list[str]:
        return [u for m, u, _, _ in self.calls if method is None or m == method]


@pytest.fixture()
def fake_transport() -> FakeTransport:
    return FakeTransport()


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


@pytest.fixture()
def preferences() -> StaticPreferences:
    """Defaults: cascade, all uploads, SFW off."""
    return StaticPreferences(PreferencesConfig())


@pytest.fixture()
def make_preferences() -> Callable[..., StaticPreferences]:
    def _make(
        render_mode: RenderMode = RenderMode.CASCADE,
        dedup_mode: DedupMode = DedupMode.ALL,
        sfw_mode: bool = False,
    ) -> StaticPreferences:
        return StaticPreferences(
            PreferencesConfig(
                render_mode=render_mode, dedup_mode=dedup_mode, sfw_mode=sfw_mode
            )
        )

    return _make


# ---------------------------------------------------------------------------
# Site profiles
# ---------------------------------------------------------------------------


def build_profile(**overrides: Any) -> SiteProfile:
    """Minimal profile with a redirect viewer; override any top-level field."""
    profile = SiteProfile(
        name="testsite",
        base_url=BASE_URL,
        listing=ListingConfig(
            entries=EntrySelectors(item="div.item", link="a", title="h3"),
            popular=ListingEndpoint(
                url="/popular",
                params=(("page", "{page}"),),
                next_page="a.next",
            ),
            latest=ListingEndpoint(
                url="/latest/{page}",
                next_page="a.next",
            ),
            search=ListingEndpoint(
                url="/search",
                query_param="q",
                params=(("page", "{page}"),),
                next_page="a.next",
            ),
        ),
        chapters=ChapterSelectors(upload="li.chapter", link="a"),
        pages=PageSelectors(strategy="redirect", image="div.viewer img"),
    )
    return replace(profile, **overrides)


@pytest.fixture()
def profile() -> SiteProfile:
    return build_profile()


@pytest.fixture()
def make_profile() -> Callable[..., SiteProfile]:
    return build_profile
