"""Popular / latest / search listing crawler."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import urlencode, urljoin

import structlog

from mangacrawl.domain.entities import CatalogEntry, ListingKind, ListingPage
from mangacrawl.domain.exceptions import ConfigurationError
from mangacrawl.domain.ports import HttpTransportPort, PreferencesPort
from mangacrawl.domain.sites import (
    Filter,
    ListingEndpoint,
    QueryParams,
    SiteProfile,
    encode_filters,
)
from mangacrawl.infrastructure.common.html_selectors import parse_html
from mangacrawl.infrastructure.http.transport import require_ok
from mangacrawl.infrastructure.sites.extractors import SiteExtractors

from .dedup import dedupe_by_fingerprint

log = structlog.get_logger(__name__)

SFW_MODE_PREF = "sfw_mode"


def build_url(base_url: str, path: str, params: QueryParams) -> str:
    """Join *path* onto *base_url* and append *params* (empty values kept)."""
    url = urljoin(base_url, path)
    if not params:
        return url
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{urlencode(params)}"


class PaginatedCrawler:
    """Fetches one listing page at a time.

    Each call issues exactly one request (through the rate-limited
    transport) and returns the entries in document order plus whether a
    next page exists. Non-2xx responses raise ``HttpStatusError``; there
    is no retry here.
    """

    def __init__(
        self,
        profile: SiteProfile,
        transport: HttpTransportPort,
        extractors: SiteExtractors,
        preferences: PreferencesPort,
    ) -> None:
        self._profile = profile
        self._transport = transport
        self._extractors = extractors
        self._preferences = preferences
        self._log = log.bind(site=profile.name)

    def build_request_url(
        self,
        kind: ListingKind,
        page: int,
        query: str = "",
        filters: Sequence[Filter] | None = None,
    ) -> str:
        endpoint = self._endpoint(kind)
        sfw = self._preferences.get_bool(SFW_MODE_PREF, False)

        params: QueryParams = []
        if kind is ListingKind.SEARCH and endpoint.query_param:
            params.append((endpoint.query_param, query))
        params.extend((k, v.format(page=page)) for k, v in endpoint.params)
        if sfw and self._profile.sfw is not None:
            params.extend(self._profile.sfw.params)
        if filters:
            params.extend(encode_filters(filters, sfw=sfw))

        return build_url(
            self._profile.base_url, endpoint.url.format(page=page), params
        )

    async def fetch_listing(
        self,
        kind: ListingKind,
        page: int = 1,
        query: str = "",
        filters: Sequence[Filter] | None = None,
    ) -> ListingPage:
        """Fetch and parse one listing page."""
        id_prefix = self._profile.listing.id_search_prefix
        if kind is ListingKind.SEARCH and id_prefix and query.startswith(id_prefix):
            return await self._fetch_by_id(query[len(id_prefix) :])

        url = self.build_request_url(kind, page, query, filters)
        resp = require_ok(
            await self._transport.send("GET", url, headers=self._profile.headers),
            context=f"{self._profile.name} {kind.value} listing",
        )
        soup = parse_html(resp.text)

        entries = self._extractors.entries(soup, kind)
        if self._profile.listing.dedupes_by_thumbnail(kind):
            entries = dedupe_by_fingerprint(entries)
        has_next = self._extractors.has_next(soup, kind)

        self._log.info(
            "listing_fetched",
            kind=kind.value,
            page=page,
            entries=len(entries),
            has_next=has_next,
        )
        return ListingPage(entries=entries, has_next=has_next)

    async def _fetch_by_id(self, series_id: str) -> ListingPage:
        template = self._profile.listing.id_search_path
        if not template:
            raise ConfigurationError(
                f"{self._profile.name}: id search prefix set without id_search_path"
            )
        path = template.format(id=series_id)
        url = urljoin(self._profile.base_url, path)
        resp = require_ok(
            await self._transport.send("GET", url, headers=self._profile.headers),
            context=f"{self._profile.name} id search",
        )
        details = self._extractors.details(parse_html(resp.text), path)
        entry = CatalogEntry(
            path=path, title=details.title, thumbnail_url=details.thumbnail_url
        )
        self._log.info("listing_fetched_by_id", series_id=series_id)
        return ListingPage(entries=[entry], has_next=False)

    def _endpoint(self, kind: ListingKind) -> ListingEndpoint:
        endpoint = self._profile.listing.endpoint(kind)
        if endpoint is None:
            raise ConfigurationError(
                f"{self._profile.name} has no {kind.value} listing"
            )
        return endpoint
