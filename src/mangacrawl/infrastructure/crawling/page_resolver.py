"""Resolve a chapter handle into its list of pages.

Three site strategies are supported:

``token_form``
    The chapter page holds one form per upload. Its action URL (suffixed
    with a client timestamp) is requested as GET, or as POST carrying the
    hidden token, and the redirect target is the viewer.
``redirect``
    Requesting the chapter URL redirects straight to the viewer.
``probe``
    The viewer shows one image; the page count is discovered with
    ``PageCountProber``.

For the first two, the viewer URL is switched between ``cascade`` and
``paginated`` before it is fetched.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable
from urllib.parse import urljoin, urlsplit, urlunsplit

import structlog
from bs4 import BeautifulSoup

from mangacrawl.domain.entities import PageDescriptor, RenderMode
from mangacrawl.domain.exceptions import ConfigurationError, ParseAmbiguityError
from mangacrawl.domain.ports import HttpTransportPort, PreferencesPort
from mangacrawl.domain.sites import SiteProfile
from mangacrawl.infrastructure.common.html_selectors import (
    absolute_url,
    extract_attr,
    parse_html,
)
from mangacrawl.infrastructure.http.transport import require_ok

from .page_prober import PageCountProber, page_image_url

log = structlog.get_logger(__name__)

SERVER_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def switch_render_mode(url: str, mode: RenderMode) -> str:
    """Point a viewer URL at *mode* if it currently names the other mode.

    Only a whole path segment counts as a mode. The last such segment is
    replaced together with whatever follows it (``/paginated/3``).
    """
    parts = urlsplit(url)
    segments = parts.path.split("/")
    modes = {m.value for m in RenderMode}

    index = next(
        (i for i in range(len(segments) - 1, -1, -1) if segments[i] in modes), None
    )
    if index is None or segments[index] == mode.value:
        return url

    path = "/".join(segments[:index] + [mode.value])
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


class ChapterPageResolver:
    """Multi-step page-list resolution for one site.

    Keeps the last computed server timestamp between resolutions; it is
    refreshed after every token-form resolution and never moves backwards.
    """

    def __init__(
        self,
        profile: SiteProfile,
        transport: HttpTransportPort,
        preferences: PreferencesPort,
        *,
        prober: PageCountProber | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._profile = profile
        self._pages = profile.pages
        self._transport = transport
        self._preferences = preferences
        self._prober = prober or PageCountProber(
            transport,
            upper_bound=profile.pages.probe_upper_bound,
            headers=profile.headers,
        )
        self._clock = clock
        self._timestamp = self._server_time()
        self._log = log.bind(site=profile.name)

    # ------------------------------------------------------------------
    # Server clock
    # ------------------------------------------------------------------

    @property
    def timestamp(self) -> str:
        """Timestamp that the next token-form request will carry."""
        return self._timestamp

    def _server_time(self) -> str:
        offset = timezone(timedelta(hours=self._pages.utc_offset_hours))
        return self._clock().astimezone(offset).strftime(SERVER_TIME_FORMAT)

    def refresh_clock(self) -> str:
        # Fixed-width format, so string order is chronological order.
        self._timestamp = max(self._timestamp, self._server_time())
        return self._timestamp

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def resolve_pages(
        self, chapter_path: str, render_mode: RenderMode | None = None
    ) -> list[PageDescriptor]:
        """Resolve *chapter_path* into page descriptors.

        *render_mode* defaults to the current preference.
        """
        strategy = self._pages.strategy
        if strategy == "probe":
            return await self._resolve_probed(chapter_path)

        mode = render_mode or self._preferences.get_render_mode()
        if strategy == "token_form":
            viewer_url = await self._follow_token_form(chapter_path)
        elif strategy == "redirect":
            viewer_url = await self._follow_redirect(chapter_path)
        else:
            raise ConfigurationError(f"Unknown page strategy {strategy!r}")

        url = switch_render_mode(viewer_url, mode)
        headers = {**self._profile.headers, "Referer": viewer_url}
        resp = require_ok(
            await self._transport.send("GET", url, headers=headers),
            context=f"{self._profile.name} viewer",
        )
        soup = parse_html(resp.text)

        if mode is RenderMode.CASCADE:
            pages = self._cascade_pages(soup, resp.url)
        else:
            pages = self._paginated_pages(soup, resp.url)

        self._log.info(
            "pages_resolved", chapter=chapter_path, mode=mode.value, pages=len(pages)
        )
        return pages

    async def resolve_image_url(self, page: PageDescriptor) -> str:
        """Image URL for a page, fetching its viewer page if needed."""
        if page.image_url:
            return page.image_url

        resp = require_ok(
            await self._transport.send(
                "GET", page.page_url, headers=self._profile.headers
            ),
            context=f"{self._profile.name} page {page.index}",
        )
        src = extract_attr(parse_html(resp.text), self._pages.page_image, "src")
        if not src:
            raise ParseAmbiguityError(f"No page image on {page.page_url}")
        return absolute_url(resp.url, src)

    # ------------------------------------------------------------------
    # Viewer URL discovery
    # ------------------------------------------------------------------

    async def _follow_redirect(self, chapter_path: str) -> str:
        url = urljoin(self._profile.base_url, chapter_path)
        resp = require_ok(
            await self._transport.send("GET", url, headers=self._profile.headers),
            context=f"{self._profile.name} chapter",
        )
        return resp.url

    async def _follow_token_form(self, chapter_path: str) -> str:
        chapter_part, _, form_id = chapter_path.partition("#")
        if not form_id:
            raise ParseAmbiguityError(f"Chapter handle has no form id: {chapter_path}")
        chapter_url = urljoin(self._profile.base_url, chapter_part)

        resp = await self._transport.send(
            "GET", chapter_url, headers=self._profile.headers
        )
        require_ok(resp, context=f"{self._profile.name} HTTP error")
        soup = parse_html(resp.text)

        form = soup.find("form", id=form_id)
        if form is None:
            raise ParseAmbiguityError(f"Form #{form_id} not found on {chapter_url}")
        action = str(form.get("action") or "").strip()
        if not action:
            raise ParseAmbiguityError(f"Form #{form_id} has no action")
        token = extract_attr(form, self._pages.token_input, "value")
        method = str(form.get("method") or "").strip().upper()

        target = f"{absolute_url(chapter_url, action)}/{self._timestamp}"
        self.refresh_clock()

        headers = {**self._profile.headers, "Referer": chapter_url}
        if method == "GET":
            redirect = await self._transport.send("GET", target, headers=headers)
        elif method == "POST":
            if not token:
                raise ParseAmbiguityError(f"Form #{form_id} has no token")
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            redirect = await self._transport.send(
                "POST", target, headers=headers, data={self._pages.token_field: token}
            )
        else:
            raise ConfigurationError(
                f"{self._profile.name}: unsupported form method {method!r}"
            )

        self._log.debug("token_form_followed", method=method, viewer=redirect.url)
        return redirect.url

    # ------------------------------------------------------------------
    # Page extraction
    # ------------------------------------------------------------------

    def _cascade_pages(
        self, soup: BeautifulSoup, page_url: str
    ) -> list[PageDescriptor]:
        lazy = self._pages.lazy_attr
        pages: list[PageDescriptor] = []
        for img in soup.select(self._pages.image):
            src = img.get(lazy) if lazy and img.has_attr(lazy) else img.get("src")
            if not src:
                continue
            pages.append(
                PageDescriptor(
                    index=len(pages),
                    page_url=page_url,
                    image_url=absolute_url(page_url, str(src).strip()),
                )
            )
        return pages

    def _paginated_pages(
        self, soup: BeautifulSoup, page_url: str
    ) -> list[PageDescriptor]:
        options = soup.select(self._pages.page_options)
        if not options:
            raise ParseAmbiguityError(f"No page selector on {page_url}")

        # Viewer URLs may already end in a page number ("/paginated/3").
        base = page_url.split("/paginated")[0].rstrip("/")
        pages: list[PageDescriptor] = []
        for option in options:
            try:
                value = int(str(option.get("value", "")).strip())
            except ValueError:
                continue
            pages.append(
                PageDescriptor(index=value, page_url=f"{base}/paginated/{value}")
            )
        return pages

    async def _resolve_probed(self, chapter_path: str) -> list[PageDescriptor]:
        if not self._pages.probe_image:
            raise ConfigurationError(f"{self._profile.name}: probe_image not set")

        url = urljoin(self._profile.base_url, chapter_path)
        resp = require_ok(
            await self._transport.send("GET", url, headers=self._profile.headers),
            context=f"{self._profile.name} chapter",
        )
        template = extract_attr(parse_html(resp.text), self._pages.probe_image, "src")
        if not template:
            raise ParseAmbiguityError(f"No reader image on {url}")
        template = absolute_url(resp.url, template)
        extension = template.rsplit(".", 1)[-1]

        count = await self._prober.probe_last_page(template, extension)
        self._log.info(
            "pages_resolved", chapter=chapter_path, mode="probe", pages=count
        )
        return [
            PageDescriptor(
                index=page - 1,
                page_url=url,
                image_url=page_image_url(template, page, extension),
            )
            for page in range(1, count + 1)
        ]
