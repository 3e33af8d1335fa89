from .filters import (
    Filter,
    GenreGroupFilter,
    GenreOption,
    QueryParams,
    SelectFilter,
    SortFilter,
    TriState,
    TriStateFilter,
    encode_filters,
)
from .profile import (
    ChapterSelectors,
    DedupKeep,
    DetailSelectors,
    EntrySelectors,
    ListingConfig,
    ListingEndpoint,
    PageSelectors,
    PageStrategy,
    SfwConfig,
    SiteProfile,
)

__all__ = [
    "ChapterSelectors",
    "DedupKeep",
    "DetailSelectors",
    "EntrySelectors",
    "Filter",
    "GenreGroupFilter",
    "GenreOption",
    "ListingConfig",
    "ListingEndpoint",
    "PageSelectors",
    "PageStrategy",
    "QueryParams",
    "SelectFilter",
    "SfwConfig",
    "SiteProfile",
    "SortFilter",
    "TriState",
    "TriStateFilter",
    "encode_filters",
]
