"""Tests for the MangaSource facade."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest

from mangacrawl.application import MangaSource
from mangacrawl.domain.entities import (
    CatalogEntry,
    ChapterRecord,
    ListingKind,
    ListingPage,
    PageDescriptor,
    RenderMode,
    SeriesDetails,
)
from mangacrawl.domain.exceptions import ConfigurationError
from mangacrawl.domain.sites import PageSelectors, TriStateFilter

PAGE = ListingPage(entries=[CatalogEntry("/m/1", "One")], has_next=True)


def _source(profile, **kwargs):
    listing = MagicMock()
    listing.fetch_listing = AsyncMock(return_value=PAGE)
    series = MagicMock()
    series.fetch_details = AsyncMock(return_value=SeriesDetails("/m/1", "One"))
    series.fetch_chapters = AsyncMock(
        return_value=[ChapterRecord("/c/1", "Chapter 1", chapter_number=1.0)]
    )
    resolver = MagicMock()
    resolver.resolve_pages = AsyncMock(return_value=[PageDescriptor(1, "/p/1")])
    resolver.resolve_image_url = AsyncMock(return_value="https://img/1.jpg")
    source = MangaSource(profile, listing, series, resolver, **kwargs)
    return source, listing, series, resolver


class TestListings:
    @pytest.mark.asyncio
    async def test_popular(self, profile) -> None:
        source, listing, _, _ = _source(profile)
        assert await source.popular(3) is PAGE
        listing.fetch_listing.assert_awaited_once_with(
            ListingKind.POPULAR, 3, filters=None
        )

    @pytest.mark.asyncio
    async def test_search_passes_query_and_filters(self, profile) -> None:
        source, listing, _, _ = _source(profile)
        filters = [TriStateFilter(name="Webcomic", param="webcomic")]
        await source.search(2, "berserk", filters)
        listing.fetch_listing.assert_awaited_once_with(
            ListingKind.SEARCH, 2, query="berserk", filters=filters
        )

    @pytest.mark.asyncio
    async def test_latest(self, profile) -> None:
        source, listing, _, _ = _source(profile)
        await source.latest()
        listing.fetch_listing.assert_awaited_once_with(
            ListingKind.LATEST, 1, filters=None
        )

    @pytest.mark.asyncio
    async def test_latest_unsupported(self, make_profile) -> None:
        base = make_profile()
        profile = replace(base, listing=replace(base.listing, latest=None))
        source, listing, _, _ = _source(profile)
        with pytest.raises(ConfigurationError, match="latest"):
            await source.latest()
        listing.fetch_listing.assert_not_awaited()

    def test_filters_are_a_copy(self, make_profile) -> None:
        webcomic = TriStateFilter(name="Webcomic", param="webcomic")
        source, _, _, _ = _source(make_profile(filters=(webcomic,)))
        filters = source.filters()
        filters.clear()
        assert source.filters() == [webcomic]
        assert source.name == "testsite"


class TestSeriesAndPages:
    @pytest.mark.asyncio
    async def test_details(self, profile) -> None:
        source, _, series, _ = _source(profile)
        details = await source.details("/m/1")
        assert details.title == "One"
        series.fetch_details.assert_awaited_once_with("/m/1")

    @pytest.mark.asyncio
    async def test_chapters_refresh_clock_for_token_form(self, make_profile) -> None:
        profile = make_profile(pages=PageSelectors(strategy="token_form"))
        source, _, _, resolver = _source(profile)
        await source.chapters("/m/1")
        resolver.refresh_clock.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_chapters_leave_clock_alone_otherwise(self, profile) -> None:
        source, _, _, resolver = _source(profile)
        chapters = await source.chapters("/m/1")
        assert [c.path for c in chapters] == ["/c/1"]
        resolver.refresh_clock.assert_not_called()

    @pytest.mark.asyncio
    async def test_pages_use_record_render_mode(self, profile) -> None:
        source, _, _, resolver = _source(profile)
        record = ChapterRecord("/c/1", "Ch 1", render_mode=RenderMode.PAGINATED)
        await source.pages(record)
        resolver.resolve_pages.assert_awaited_once_with("/c/1", RenderMode.PAGINATED)

    @pytest.mark.asyncio
    async def test_pages_from_path_use_preference(self, profile) -> None:
        source, _, _, resolver = _source(profile)
        await source.pages("/c/1")
        resolver.resolve_pages.assert_awaited_once_with("/c/1")

    @pytest.mark.asyncio
    async def test_image_url(self, profile) -> None:
        source, _, _, resolver = _source(profile)
        page = PageDescriptor(1, "/p/1")
        assert await source.image_url(page) == "https://img/1.jpg"
        resolver.resolve_image_url.assert_awaited_once_with(page)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_runs_closers_once_in_order(self, profile) -> None:
        order: list[str] = []

        async def close_site() -> None:
            order.append("site")

        async def close_ua() -> None:
            order.append("ua")

        source, _, _, _ = _source(profile, closers=[close_site, close_ua])
        async with source as entered:
            assert entered is source
        await source.aclose()
        assert order == ["site", "ua"]
