"""Pure domain models for site profiles (framework-free).

A profile holds everything site-specific the crawling core needs:
URL templates, CSS selectors, filter definitions and rate budgets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from mangacrawl.domain.entities import ListingKind, RateBudget

from .filters import Filter

PageStrategy = Literal["token_form", "redirect", "probe"]
DedupKeep = Literal["first", "last"]


@dataclass(frozen=True)
class EntrySelectors:
    """Selectors for one listing entry, relative to ``item``.

    An empty selector reads from the item element itself.
    """

    item: str
    link: str = "a"
    title: str = ""
    thumbnail: str = "img"
    thumbnail_attr: str = "src"
    # Regex with one group, applied to the thumbnail element's markup
    # (for covers set through inline CSS).
    thumbnail_pattern: str | None = None


@dataclass(frozen=True)
class ListingEndpoint:
    """``url`` and ``params`` values may contain ``{page}``."""

    url: str
    params: tuple[tuple[str, str], ...] = ()
    query_param: str | None = None
    entries: EntrySelectors | None = None
    next_page: str | None = None
    distinct_titles: bool = False
    # None falls back to the listing-wide setting.
    dedupe_by_thumbnail: bool | None = None


@dataclass(frozen=True)
class ListingConfig:
    entries: EntrySelectors
    popular: ListingEndpoint
    search: ListingEndpoint
    latest: ListingEndpoint | None = None
    dedupe_by_thumbnail: bool = False
    id_search_prefix: str | None = None
    id_search_path: str | None = None

    def endpoint(self, kind: ListingKind) -> ListingEndpoint | None:
        if kind is ListingKind.POPULAR:
            return self.popular
        if kind is ListingKind.LATEST:
            return self.latest
        return self.search

    def dedupes_by_thumbnail(self, kind: ListingKind) -> bool:
        endpoint = self.endpoint(kind)
        if endpoint is not None and endpoint.dedupe_by_thumbnail is not None:
            return endpoint.dedupe_by_thumbnail
        return self.dedupe_by_thumbnail


@dataclass(frozen=True)
class DetailSelectors:
    title: str | None = None
    author: str | None = None
    artist: str | None = None
    genres: str | None = None
    description: str | None = None
    status: str | None = None
    thumbnail: str | None = None
    thumbnail_attr: str = "src"
    ongoing_keywords: tuple[str, ...] = ("ongoing",)
    completed_keywords: tuple[str, ...] = ("completed",)
    alternative_name: str | None = None


@dataclass(frozen=True)
class ChapterSelectors:
    """Chapter list layout.

    Grouped layout: each ``group`` holds a ``heading`` and several
    ``upload`` rows (one per scanlator). Without ``group`` the n-th
    ``heading`` is paired with the n-th ``uploads`` container. Without
    ``heading`` every ``upload`` row is a chapter of its own.
    """

    upload: str
    container: str | None = None
    group: str | None = None
    heading: str | None = None
    uploads: str | None = None
    name: str | None = None
    number_pattern: str = r"(\d+(?:\.\d+)?)"
    link: str = "a"
    form: str | None = None
    scanlator: str | None = None
    date: str | None = None
    date_format: str = "%Y-%m-%d"
    one_shot: str | None = None
    one_shot_name: str = "One Shot"
    # Upload kept per chapter when only one scanlator is wanted.
    dedup_keep: DedupKeep = "first"


@dataclass(frozen=True)
class PageSelectors:
    strategy: PageStrategy
    image: str = "img"
    lazy_attr: str = "data-src"
    page_options: str = "#viewer-pages-select option"
    page_image: str = "img"
    token_input: str = "input"
    token_field: str = "_token"
    utc_offset_hours: int = 1
    probe_image: str | None = None
    probe_upper_bound: int = 500


@dataclass(frozen=True)
class SfwConfig:
    """Query parameters appended to every listing request in SFW mode."""

    params: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class SiteProfile:
    name: str
    base_url: str
    listing: ListingConfig
    chapters: ChapterSelectors
    pages: PageSelectors
    details: DetailSelectors = field(default_factory=DetailSelectors)
    language: str = "en"
    version: str = "1.0.0"
    headers: dict[str, str] = field(default_factory=dict)
    user_agent: str | None = None
    rotate_user_agent: bool = False
    rate_limits: tuple[RateBudget, ...] = ()
    filters: tuple[Filter, ...] = ()
    sfw: SfwConfig | None = None

    @property
    def supports_latest(self) -> bool:
        return self.listing.latest is not None
