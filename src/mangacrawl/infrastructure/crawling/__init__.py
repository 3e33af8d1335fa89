from .dedup import dedupe_by_fingerprint, dedupe_chapters
from .listing import PaginatedCrawler
from .page_prober import PageCountProber
from .page_resolver import ChapterPageResolver, switch_render_mode
from .series import SeriesCrawler

__all__ = [
    "ChapterPageResolver",
    "PageCountProber",
    "PaginatedCrawler",
    "SeriesCrawler",
    "dedupe_by_fingerprint",
    "dedupe_chapters",
    "switch_render_mode",
]
