from .catalog import (
    CatalogEntry,
    ChapterRecord,
    DedupMode,
    ListingKind,
    ListingPage,
    PageDescriptor,
    RateBudget,
    RenderMode,
    SeriesDetails,
    SeriesStatus,
)

__all__ = [
    "CatalogEntry",
    "ChapterRecord",
    "DedupMode",
    "ListingKind",
    "ListingPage",
    "PageDescriptor",
    "RateBudget",
    "RenderMode",
    "SeriesDetails",
    "SeriesStatus",
]
