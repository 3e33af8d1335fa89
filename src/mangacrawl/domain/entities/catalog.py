"""Catalog entities shared by listings, chapter lists and page resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ListingKind(str, Enum):
    POPULAR = "popular"
    LATEST = "latest"
    SEARCH = "search"


class RenderMode(str, Enum):
    """How a chapter viewer renders its images."""

    CASCADE = "cascade"  # all images on one page
    PAGINATED = "paginated"  # one request per page


class DedupMode(str, Enum):
    """Chapter list scanlator handling."""

    ALL = "all"
    ONE = "one"


class SeriesStatus(str, Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CatalogEntry:
    """One series summary from a listing page.

    ``path`` identifies the series within its site. ``thumbnail_url`` is
    only used to group likely duplicates and is never an identity.
    """

    path: str
    title: str
    thumbnail_url: str = ""


@dataclass(frozen=True)
class ListingPage:
    entries: list[CatalogEntry]
    has_next: bool


@dataclass(frozen=True)
class SeriesDetails:
    path: str
    title: str = ""
    author: str = ""
    artist: str = ""
    genres: list[str] = field(default_factory=list)
    description: str = ""
    status: SeriesStatus = SeriesStatus.UNKNOWN
    thumbnail_url: str = ""


@dataclass(frozen=True)
class ChapterRecord:
    """A single chapter upload.

    ``path`` is the handle passed back to page resolution. ``uploaded_at``
    is epoch milliseconds, 0 when unknown.
    """

    path: str
    name: str
    scanlator: str = ""
    chapter_number: float = -1.0
    uploaded_at: int = 0
    render_mode: RenderMode = RenderMode.CASCADE


@dataclass(frozen=True)
class PageDescriptor:
    """One page of a chapter.

    Cascade and probed pages arrive with ``image_url`` set. Paginated pages
    only carry ``page_url`` and need a follow-up fetch for the image.
    """

    index: int
    page_url: str = ""
    image_url: str | None = None


@dataclass(frozen=True)
class RateBudget:
    host: str
    permits: int
    window_seconds: float
