"""Series detail and chapter list fetching."""

from __future__ import annotations

from dataclasses import replace
from urllib.parse import urljoin

import structlog

from mangacrawl.domain.entities import ChapterRecord, SeriesDetails
from mangacrawl.domain.ports import HttpTransportPort, PreferencesPort
from mangacrawl.domain.sites import SiteProfile
from mangacrawl.infrastructure.common.html_selectors import parse_html
from mangacrawl.infrastructure.http.transport import require_ok
from mangacrawl.infrastructure.sites.extractors import SiteExtractors

from .dedup import dedupe_chapters

log = structlog.get_logger(__name__)


class SeriesCrawler:
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

    async def fetch_details(self, path: str) -> SeriesDetails:
        url = urljoin(self._profile.base_url, path)
        resp = require_ok(
            await self._transport.send("GET", url, headers=self._profile.headers),
            context=f"{self._profile.name} details",
        )
        return self._extractors.details(parse_html(resp.text), path)

    async def fetch_chapters(self, path: str) -> list[ChapterRecord]:
        """Chapters of a series, filtered by the dedup preference.

        Each record carries the render mode preferred at listing time.
        """
        url = urljoin(self._profile.base_url, path)
        resp = require_ok(
            await self._transport.send("GET", url, headers=self._profile.headers),
            context=f"{self._profile.name} chapters",
        )
        records = self._extractors.chapters(parse_html(resp.text), resp.url)

        mode = self._preferences.get_dedup_mode()
        render_mode = self._preferences.get_render_mode()
        chapters = [
            replace(record, render_mode=render_mode)
            for record in dedupe_chapters(
                records, mode, keep=self._profile.chapters.dedup_keep
            )
        ]
        self._log.info(
            "chapters_fetched",
            path=path,
            uploads=len(records),
            chapters=len(chapters),
            dedup_mode=mode.value,
        )
        return chapters
