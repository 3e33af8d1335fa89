"""Extraction callbacks that turn parsed pages into catalog records.

``SiteExtractors`` bundles one callable per capability. The defaults are
driven entirely by a ``SiteProfile``'s selectors; callers with unusual
markup inject their own callables instead.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import partial
from typing import Callable

import structlog
from bs4 import BeautifulSoup, Tag

from mangacrawl.domain.entities import (
    CatalogEntry,
    ChapterRecord,
    ListingKind,
    SeriesDetails,
    SeriesStatus,
)
from mangacrawl.domain.sites import ChapterSelectors, DetailSelectors, SiteProfile
from mangacrawl.infrastructure.common.html_selectors import (
    absolute_url,
    extract_all_text,
    extract_attr,
    extract_pattern,
    extract_text,
    relative_path,
)
from mangacrawl.infrastructure.common.parsers import (
    parse_chapter_number,
    parse_upload_date,
)

log = structlog.get_logger(__name__)

EntryExtractor = Callable[[BeautifulSoup, ListingKind], list[CatalogEntry]]
NextPagePredicate = Callable[[BeautifulSoup, ListingKind], bool]
DetailExtractor = Callable[[BeautifulSoup, str], SeriesDetails]
ChapterExtractor = Callable[[BeautifulSoup, str], list[ChapterRecord]]

_HIDDEN_CLASS_RE = r"\.([\w-]+)\s*\{\s*display\s*:\s*none;?\s*\}"


@dataclass(frozen=True)
class SiteExtractors:
    entries: EntryExtractor
    has_next: NextPagePredicate
    details: DetailExtractor
    chapters: ChapterExtractor


# ----------------------------------------------------------------------
# Listings
# ----------------------------------------------------------------------


def extract_entries(
    profile: SiteProfile, soup: BeautifulSoup, kind: ListingKind
) -> list[CatalogEntry]:
    """Listing entries in document order."""
    endpoint = profile.listing.endpoint(kind)
    selectors = (endpoint.entries if endpoint else None) or profile.listing.entries

    entries: list[CatalogEntry] = []
    for item in soup.select(selectors.item):
        href = extract_attr(item, selectors.link, "href")
        if not href:
            log.debug("listing_entry_without_link", site=profile.name, kind=kind.value)
            continue

        if selectors.thumbnail_pattern:
            thumbnail = extract_pattern(
                item, selectors.thumbnail, selectors.thumbnail_pattern
            )
        else:
            thumbnail = extract_attr(
                item, selectors.thumbnail, selectors.thumbnail_attr
            )

        entries.append(
            CatalogEntry(
                path=relative_path(absolute_url(profile.base_url, href)),
                title=extract_text(item, selectors.title),
                thumbnail_url=absolute_url(profile.base_url, thumbnail),
            )
        )

    if endpoint is not None and endpoint.distinct_titles:
        seen: set[str] = set()
        distinct: list[CatalogEntry] = []
        for entry in entries:
            if entry.title in seen:
                continue
            seen.add(entry.title)
            distinct.append(entry)
        entries = distinct

    return entries


def has_next_page(
    profile: SiteProfile, soup: BeautifulSoup, kind: ListingKind
) -> bool:
    endpoint = profile.listing.endpoint(kind)
    if endpoint is None or not endpoint.next_page:
        return False
    return soup.select_one(endpoint.next_page) is not None


# ----------------------------------------------------------------------
# Series details
# ----------------------------------------------------------------------


def parse_status(text: str, selectors: DetailSelectors) -> SeriesStatus:
    lowered = text.lower()
    if any(k.lower() in lowered for k in selectors.ongoing_keywords):
        return SeriesStatus.ONGOING
    if any(k.lower() in lowered for k in selectors.completed_keywords):
        return SeriesStatus.COMPLETED
    return SeriesStatus.UNKNOWN


def extract_details(
    profile: SiteProfile, soup: BeautifulSoup, path: str
) -> SeriesDetails:
    d = profile.details

    def text(selector: str | None) -> str:
        return extract_text(soup, selector) if selector else ""

    description = text(d.description)
    alternative = text(d.alternative_name)
    if alternative:
        note = f"Alternative Name: {alternative}"
        description = f"{description}\n\n{note}" if description else note

    thumbnail = extract_attr(soup, d.thumbnail, d.thumbnail_attr) if d.thumbnail else ""

    return SeriesDetails(
        path=path,
        title=text(d.title),
        author=text(d.author),
        artist=text(d.artist),
        genres=extract_all_text(soup, d.genres) if d.genres else [],
        description=description,
        status=parse_status(text(d.status), d),
        thumbnail_url=absolute_url(profile.base_url, thumbnail),
    )


# ----------------------------------------------------------------------
# Chapter lists
# ----------------------------------------------------------------------


def _hidden_classes(soup: BeautifulSoup) -> set[str]:
    styles = " ".join(style.get_text() for style in soup.select("head style"))
    return set(re.findall(_HIDDEN_CLASS_RE, styles))


def _visible_href(row: Tag, selector: str, hidden: set[str]) -> str:
    """First link whose classes are not hidden by the page's inline CSS."""
    for link in row.select(selector) if selector else [row]:
        classes = set(link.get("class") or [])
        if classes & hidden:
            continue
        href = link.get("href")
        if href:
            return str(href)
    return ""


def _slug_name(path: str) -> str:
    slug = path.split("#")[0].split("?")[0].rstrip("/").rsplit("/", 1)[-1]
    return slug.replace("-", " ")


def _upload_record(
    profile: SiteProfile,
    row: Tag,
    *,
    name: str,
    number: float,
    series_url: str,
    hidden: set[str],
) -> ChapterRecord | None:
    c = profile.chapters
    if profile.pages.strategy == "token_form":
        form_id = extract_attr(row, c.form or "form", "id")
        if not form_id:
            log.debug("chapter_without_form", site=profile.name, name=name)
            return None
        path = f"{relative_path(series_url.split('#')[0])}#{form_id}"
    else:
        href = _visible_href(row, c.link, hidden)
        if not href:
            log.debug("chapter_without_link", site=profile.name, name=name)
            return None
        path = relative_path(absolute_url(profile.base_url, href))

    return ChapterRecord(
        path=path,
        name=name or _slug_name(path),
        scanlator=extract_text(row, c.scanlator) if c.scanlator else "",
        chapter_number=number,
        uploaded_at=parse_upload_date(
            extract_text(row, c.date) if c.date else "", c.date_format
        ),
    )


def _grouped_rows(
    soup: BeautifulSoup, c: ChapterSelectors, heading_selector: str
) -> list[tuple[str, float, list[Tag]]]:
    groups: list[tuple[str, float, list[Tag]]] = []

    if c.group:
        for group in soup.select(c.group):
            heading = extract_text(group, heading_selector)
            name = extract_text(group, c.name) if c.name else heading
            number = parse_chapter_number(heading, c.number_pattern)
            groups.append((name, number, group.select(c.upload)))
        return groups

    headings = soup.select(heading_selector)
    containers = soup.select(c.uploads or c.upload)
    for heading_el, container in zip(headings, containers):
        heading = heading_el.get_text(" ", strip=True)
        number = parse_chapter_number(heading, c.number_pattern)
        rows = container.select(c.upload) if c.uploads else [container]
        groups.append((heading, number, rows))
    return groups


def extract_chapters(
    profile: SiteProfile, soup: BeautifulSoup, series_url: str
) -> list[ChapterRecord]:
    """Every chapter upload on a series page, in document order."""
    c = profile.chapters
    hidden = _hidden_classes(soup)
    records: list[ChapterRecord] = []

    def add(row: Tag, name: str, number: float) -> None:
        record = _upload_record(
            profile, row, name=name, number=number, series_url=series_url, hidden=hidden
        )
        if record is not None:
            records.append(record)

    if c.container and soup.select_one(c.container) is None:
        for row in soup.select(c.one_shot) if c.one_shot else []:
            add(row, c.one_shot_name, -1.0)
        return records

    if c.heading is None:
        for row in soup.select(c.upload):
            name = extract_text(row, c.name) if c.name else ""
            if not name:
                name = _slug_name(_visible_href(row, c.link, hidden))
            add(row, name, parse_chapter_number(name, c.number_pattern))
        return records

    for name, number, rows in _grouped_rows(soup, c, c.heading):
        for row in rows:
            add(row, name, number)
    return records


def selector_extractors(profile: SiteProfile) -> SiteExtractors:
    """Build the default, selector-driven callbacks for *profile*."""
    return SiteExtractors(
        entries=partial(extract_entries, profile),
        has_next=partial(has_next_page, profile),
        details=partial(extract_details, profile),
        chapters=partial(extract_chapters, profile),
    )
