"""Search filter models and their query-string encoding.

Filters are immutable; callers change a filter's state with
``dataclasses.replace`` (or the ``with_*`` helpers) before passing the
list to a listing request.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Union

QueryParams = list[tuple[str, str]]


class TriState(str, Enum):
    IGNORE = "ignore"
    INCLUDE = "include"
    EXCLUDE = "exclude"


@dataclass(frozen=True)
class SelectFilter:
    """Single choice from a fixed option list (``label``, ``value``)."""

    name: str
    param: str
    options: tuple[tuple[str, str], ...]
    state: int = 0

    def with_value(self, value: str) -> "SelectFilter":
        for index, (_, option_value) in enumerate(self.options):
            if option_value == value:
                return replace(self, state=index)
        raise ValueError(f"{self.name}: unknown option {value!r}")

    def to_params(self) -> QueryParams:
        if not self.options:
            return []
        return [(self.param, self.options[self.state][1])]


@dataclass(frozen=True)
class SortFilter:
    name: str
    options: tuple[tuple[str, str], ...]
    state: int | None = 0
    ascending: bool = False
    item_param: str = "order_item"
    dir_param: str = "order_dir"

    def to_params(self) -> QueryParams:
        if self.state is None or not self.options:
            return []
        return [
            (self.item_param, self.options[self.state][1]),
            (self.dir_param, "asc" if self.ascending else "desc"),
        ]


@dataclass(frozen=True)
class TriStateFilter:
    """Content flag where "not specified" differs from "explicitly false".

    The ignore state is always encoded as an empty value, never omitted.
    """

    name: str
    param: str
    state: TriState = TriState.IGNORE
    nsfw: bool = False

    def to_params(self) -> QueryParams:
        if self.state is TriState.INCLUDE:
            return [(self.param, "true")]
        if self.state is TriState.EXCLUDE:
            return [(self.param, "false")]
        return [(self.param, "")]


@dataclass(frozen=True)
class GenreOption:
    name: str
    id: str
    state: TriState = TriState.IGNORE


@dataclass(frozen=True)
class GenreGroupFilter:
    """Genre ids sent under an include or an exclude parameter."""

    name: str
    genres: tuple[GenreOption, ...]
    include_param: str = "genders[]"
    exclude_param: str | None = "exclude_genders[]"

    def with_states(self, **states: TriState) -> "GenreGroupFilter":
        """Return a copy with genre states set by genre id."""
        genres = tuple(
            replace(genre, state=states[genre.id]) if genre.id in states else genre
            for genre in self.genres
        )
        return replace(self, genres=genres)

    def to_params(self) -> QueryParams:
        params: QueryParams = []
        for genre in self.genres:
            if genre.state is TriState.INCLUDE:
                params.append((self.include_param, genre.id))
            elif genre.state is TriState.EXCLUDE and self.exclude_param:
                params.append((self.exclude_param, genre.id))
        return params


Filter = Union[SelectFilter, SortFilter, TriStateFilter, GenreGroupFilter]


def encode_filters(filters: Iterable[Filter], *, sfw: bool = False) -> QueryParams:
    """Flatten *filters* into ordered query parameters.

    With *sfw* set, tri-state filters flagged as NSFW are dropped.
    """
    params: QueryParams = []
    for item in filters:
        if sfw and isinstance(item, TriStateFilter) and item.nsfw:
            continue
        params.extend(item.to_params())
    return params
