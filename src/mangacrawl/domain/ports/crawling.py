"""Ports for the per-site crawling components."""

from __future__ import annotations

from typing import Protocol, Sequence

from mangacrawl.domain.entities import (
    ChapterRecord,
    ListingKind,
    ListingPage,
    PageDescriptor,
    RenderMode,
    SeriesDetails,
)
from mangacrawl.domain.sites import Filter


class ListingPort(Protocol):
    async def fetch_listing(
        self,
        kind: ListingKind,
        page: int = 1,
        query: str = "",
        filters: Sequence[Filter] | None = None,
    ) -> ListingPage: ...


class SeriesPort(Protocol):
    async def fetch_details(self, path: str) -> SeriesDetails: ...
    async def fetch_chapters(self, path: str) -> list[ChapterRecord]: ...


class PageResolverPort(Protocol):
    def refresh_clock(self) -> str: ...

    async def resolve_pages(
        self, chapter_path: str, render_mode: RenderMode | None = None
    ) -> list[PageDescriptor]: ...

    async def resolve_image_url(self, page: PageDescriptor) -> str: ...
