"""Deduplication of near-duplicate listing entries and chapter uploads."""

from __future__ import annotations

from typing import Iterable

import structlog

from mangacrawl.domain.entities import CatalogEntry, ChapterRecord, DedupMode
from mangacrawl.domain.sites import DedupKeep

log = structlog.get_logger(__name__)


def dedupe_by_fingerprint(entries: Iterable[CatalogEntry]) -> list[CatalogEntry]:
    """Keep one entry per thumbnail URL.

    Sites publish the same series under alias URLs sharing one cover, e.g.
    ``/manga/tales-of-demons-and-gods`` and
    ``/manga/tales-of-demons-and-gods-by-mad-snail``. Within a group the
    shortest path survives (ties go to the first one seen), which keeps
    series that legitimately contain "by" in their own slug.

    Heuristic: unrelated series sharing a stock cover are merged too.
    """
    survivors: dict[str, CatalogEntry] = {}
    dropped = 0
    for entry in entries:
        current = survivors.get(entry.thumbnail_url)
        if current is None:
            survivors[entry.thumbnail_url] = entry
            continue
        dropped += 1
        if len(entry.path) < len(current.path):
            survivors[entry.thumbnail_url] = entry

    if dropped:
        log.debug("listing_duplicates_dropped", dropped=dropped, kept=len(survivors))
    return list(survivors.values())


def dedupe_chapters(
    records: Iterable[ChapterRecord],
    mode: DedupMode,
    *,
    keep: DedupKeep = "first",
) -> list[ChapterRecord]:
    """With ``DedupMode.ONE`` keep a single upload of each chapter.

    *keep* picks the first or last upload listed for a chapter. Chapters
    stay in the order they first appear.
    """
    records = list(records)
    if mode is DedupMode.ALL:
        return records

    kept: dict[tuple[float, str], ChapterRecord] = {}
    for record in records:
        key = (record.chapter_number, record.name)
        if key not in kept or keep == "last":
            kept[key] = record
    return list(kept.values())
