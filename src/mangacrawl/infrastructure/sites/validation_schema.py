"""Pydantic validation models for site profile YAML files."""

from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, HttpUrl, field_validator, model_validator

SITE_NAME_RE = r"^[a-z0-9-]+$"
SEMVER_RE = r"^\d+\.\d+\.\d+$"

Pair = Tuple[str, str]


class RateLimit(BaseModel):
    host: str
    permits: int = Field(..., description="Requests allowed per window. 0 = unlimited.")
    window_seconds: float = Field(default=1.0)

    @field_validator("permits")
    @classmethod
    def _validate_permits(cls, v: int) -> int:
        if v < 0:
            raise ValueError("permits must be >= 0")
        return v

    @field_validator("window_seconds")
    @classmethod
    def _validate_window(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("window_seconds must be > 0")
        return v


# === Listings ===


class EntrySelectors(BaseModel):
    item: str = Field(..., description="One element per listed series")
    link: str = "a"
    title: str = ""
    thumbnail: str = "img"
    thumbnail_attr: str = "src"
    thumbnail_pattern: Optional[str] = Field(
        default=None,
        description="Regex with one group applied to the thumbnail element's markup",
    )


class ListingEndpoint(BaseModel):
    url: str = Field(..., description="Path template, may contain {page}")
    params: Dict[str, str] = Field(default_factory=dict)
    query_param: Optional[str] = None
    entries: Optional[EntrySelectors] = None
    next_page: Optional[str] = None
    distinct_titles: bool = False
    dedupe_by_thumbnail: Optional[bool] = Field(
        default=None, description="Overrides the listing-wide setting"
    )


class ListingConfig(BaseModel):
    entries: EntrySelectors
    popular: ListingEndpoint
    search: ListingEndpoint
    latest: Optional[ListingEndpoint] = None
    dedupe_by_thumbnail: bool = False
    id_search_prefix: Optional[str] = None
    id_search_path: Optional[str] = None

    @model_validator(mode="after")
    def _validate_id_search(self) -> "ListingConfig":
        if self.id_search_prefix and not self.id_search_path:
            raise ValueError("id_search_prefix requires 'id_search_path'")
        if self.id_search_path and "{id}" not in self.id_search_path:
            raise ValueError("id_search_path must contain '{id}'")
        return self


# === Series pages ===


class DetailSelectors(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    artist: Optional[str] = None
    genres: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    thumbnail: Optional[str] = None
    thumbnail_attr: str = "src"
    ongoing_keywords: List[str] = Field(default_factory=lambda: ["ongoing"])
    completed_keywords: List[str] = Field(default_factory=lambda: ["completed"])
    alternative_name: Optional[str] = None


class ChapterSelectors(BaseModel):
    upload: str = Field(..., description="One element per chapter upload")
    container: Optional[str] = Field(
        default=None,
        description="Present on regular chapter lists; absent means one-shot",
    )
    group: Optional[str] = None
    heading: Optional[str] = None
    uploads: Optional[str] = None
    name: Optional[str] = None
    number_pattern: str = r"(\d+(?:\.\d+)?)"
    link: str = "a"
    form: Optional[str] = None
    scanlator: Optional[str] = None
    date: Optional[str] = None
    date_format: str = "%Y-%m-%d"
    one_shot: Optional[str] = None
    one_shot_name: str = "One Shot"
    dedup_keep: Literal["first", "last"] = Field(
        default="first",
        description="Upload kept per chapter in single-scanlator mode",
    )

    @model_validator(mode="after")
    def _validate_layout(self) -> "ChapterSelectors":
        if self.container and not self.one_shot:
            raise ValueError("'container' requires a 'one_shot' selector")
        if (self.group or self.uploads) and not self.heading:
            raise ValueError("'group'/'uploads' require a 'heading' selector")
        return self


class PageSelectors(BaseModel):
    strategy: Literal["token_form", "redirect", "probe"]
    image: str = "img"
    lazy_attr: str = "data-src"
    page_options: str = "#viewer-pages-select option"
    page_image: str = "img"
    token_input: str = "input"
    token_field: str = "_token"
    utc_offset_hours: int = 1
    probe_image: Optional[str] = None
    probe_upper_bound: int = 500

    @model_validator(mode="after")
    def _validate_strategy(self) -> "PageSelectors":
        if self.strategy == "probe" and not self.probe_image:
            raise ValueError("strategy 'probe' requires 'probe_image'")
        if self.probe_upper_bound < 1:
            raise ValueError("probe_upper_bound must be >= 1")
        if not -12 <= self.utc_offset_hours <= 14:
            raise ValueError("utc_offset_hours must be within -12..14")
        return self


# === Filters ===


class SelectFilter(BaseModel):
    type: Literal["select"]
    name: str
    param: str
    options: List[Pair]
    state: int = 0

    @model_validator(mode="after")
    def _validate_state(self) -> "SelectFilter":
        if self.options and not 0 <= self.state < len(self.options):
            raise ValueError(f"filter '{self.name}': state out of range")
        return self


class SortFilter(BaseModel):
    type: Literal["sort"]
    name: str
    options: List[Pair]
    state: Optional[int] = 0
    ascending: bool = False
    item_param: str = "order_item"
    dir_param: str = "order_dir"


class TriStateFilter(BaseModel):
    type: Literal["tristate"]
    name: str
    param: str
    nsfw: bool = False


class GenreGroupFilter(BaseModel):
    type: Literal["genres"]
    name: str
    genres: List[Pair]
    include_param: str = "genders[]"
    exclude_param: Optional[str] = "exclude_genders[]"


FilterDefinition = Annotated[
    Union[SelectFilter, SortFilter, TriStateFilter, GenreGroupFilter],
    Field(discriminator="type"),
]


class SfwConfig(BaseModel):
    params: List[Pair] = Field(default_factory=list)


# === Site ===


class SiteProfileDefinition(BaseModel):
    name: str = Field(..., pattern=SITE_NAME_RE)
    version: str = Field(default="1.0.0", pattern=SEMVER_RE)
    base_url: HttpUrl
    language: str = "en"
    headers: Dict[str, str] = Field(default_factory=dict)
    user_agent: Optional[str] = None
    rotate_user_agent: bool = False
    rate_limits: List[RateLimit] = Field(default_factory=list)

    listing: ListingConfig
    details: DetailSelectors = Field(default_factory=DetailSelectors)
    chapters: ChapterSelectors
    pages: PageSelectors

    filters: List[FilterDefinition] = Field(default_factory=list)
    sfw: Optional[SfwConfig] = None

    @model_validator(mode="after")
    def _validate_chapter_handles(self) -> "SiteProfileDefinition":
        if self.pages.strategy == "token_form" and not self.chapters.form:
            raise ValueError("strategy 'token_form' requires 'chapters.form'")
        return self
