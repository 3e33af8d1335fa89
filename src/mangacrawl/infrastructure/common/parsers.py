"""Parsing utilities for chapter numbers and upload dates."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

_LEADING_INT_RE = re.compile(r"(\d+)")


def parse_chapter_number(text: str, pattern: str) -> float:
    """Extract a chapter number (may be fractional, e.g. ``10.5``).

    Returns ``-1.0`` when *pattern* does not match.
    """
    match = re.search(pattern, text or "")
    if not match:
        return -1.0
    try:
        return float(match.group(1).replace(",", "."))
    except (ValueError, IndexError):
        return -1.0


def _to_millis(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def _leading_int(text: str, default: int) -> int:
    match = _LEADING_INT_RE.search(text)
    return int(match.group(1)) if match else default


def parse_upload_date(
    text: str,
    date_format: str,
    *,
    now: datetime | None = None,
) -> int:
    """Parse an upload date into epoch milliseconds (0 = unknown).

    Supports:
        - absolute dates in *date_format* (read as UTC)
        - "just now" / "less than an hour ago"
        - "2 hours ago", "yesterday", "3 days ago", "2 weeks ago"

    Relative dates count back from midnight of *now* (UTC).
    """
    raw = (text or "").strip()
    if not raw:
        return 0

    lowered = raw.lower()
    midnight = (now or datetime.now(timezone.utc)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )

    if "just now" in lowered or "less than an hour" in lowered:
        return _to_millis(midnight)
    if "hour" in lowered:
        return _to_millis(midnight - timedelta(hours=_leading_int(lowered, 1)))
    if "yesterday" in lowered or "day" in lowered:
        return _to_millis(midnight - timedelta(days=_leading_int(lowered, 1)))
    if "week" in lowered:
        return _to_millis(midnight - timedelta(weeks=_leading_int(lowered, 1)))

    try:
        parsed = datetime.strptime(raw, date_format)
    except ValueError:
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return _to_millis(parsed)
