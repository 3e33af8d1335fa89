"""Per-site facade over the crawling components."""

from __future__ import annotations

from types import TracebackType
from typing import Awaitable, Callable, Sequence

import structlog

from mangacrawl.domain.entities import (
    ChapterRecord,
    ListingKind,
    ListingPage,
    PageDescriptor,
    SeriesDetails,
)
from mangacrawl.domain.exceptions import ConfigurationError
from mangacrawl.domain.ports import ListingPort, PageResolverPort, SeriesPort
from mangacrawl.domain.sites import Filter, SiteProfile

log = structlog.get_logger(__name__)

Closer = Callable[[], Awaitable[None]]


class MangaSource:
    """One manga site: catalog listings, series, chapters and pages.

    Flow for reading a chapter:
        1. ``popular``/``latest``/``search`` -> catalog entries
        2. ``details``/``chapters`` for an entry's path
        3. ``pages`` for a chapter, then ``image_url`` per page

    Use as an async context manager (or call ``aclose``) to release the
    HTTP clients it owns.
    """

    def __init__(
        self,
        profile: SiteProfile,
        listing: ListingPort,
        series: SeriesPort,
        resolver: PageResolverPort,
        *,
        closers: Sequence[Closer] = (),
    ) -> None:
        self.profile = profile
        self._listing = listing
        self._series = series
        self._resolver = resolver
        self._closers = list(closers)

    @property
    def name(self) -> str:
        return self.profile.name

    async def __aenter__(self) -> "MangaSource":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        closers, self._closers = self._closers, []
        for close in closers:
            await close()
        log.debug("source_closed", site=self.name)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def filters(self) -> list[Filter]:
        """Default-state filters; adjust with ``dataclasses.replace``."""
        return list(self.profile.filters)

    async def popular(
        self, page: int = 1, filters: Sequence[Filter] | None = None
    ) -> ListingPage:
        return await self._listing.fetch_listing(
            ListingKind.POPULAR, page, filters=filters
        )

    async def latest(
        self, page: int = 1, filters: Sequence[Filter] | None = None
    ) -> ListingPage:
        if not self.profile.supports_latest:
            raise ConfigurationError(f"{self.name} has no latest-updates listing")
        return await self._listing.fetch_listing(
            ListingKind.LATEST, page, filters=filters
        )

    async def search(
        self,
        page: int = 1,
        query: str = "",
        filters: Sequence[Filter] | None = None,
    ) -> ListingPage:
        return await self._listing.fetch_listing(
            ListingKind.SEARCH, page, query=query, filters=filters
        )

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------

    async def details(self, path: str) -> SeriesDetails:
        return await self._series.fetch_details(path)

    async def chapters(self, path: str) -> list[ChapterRecord]:
        chapters = await self._series.fetch_chapters(path)
        if self.profile.pages.strategy == "token_form":
            # Forms embedded in this listing expect a fresh client timestamp.
            self._resolver.refresh_clock()
        return chapters

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def pages(self, chapter: ChapterRecord | str) -> list[PageDescriptor]:
        if isinstance(chapter, ChapterRecord):
            return await self._resolver.resolve_pages(
                chapter.path, chapter.render_mode
            )
        return await self._resolver.resolve_pages(chapter)

    async def image_url(self, page: PageDescriptor) -> str:
        return await self._resolver.resolve_image_url(page)
