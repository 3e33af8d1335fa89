"""Common infrastructure utilities."""

from __future__ import annotations

from .parsers import parse_chapter_number, parse_upload_date
from .rate_limiter import HostRateLimiter, host_of

__all__ = [
    "HostRateLimiter",
    "host_of",
    "parse_chapter_number",
    "parse_upload_date",
]
