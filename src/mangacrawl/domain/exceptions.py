"""Crawl and site-profile exceptions."""

from __future__ import annotations


class CrawlError(Exception):
    """Base class for all crawling errors."""


class TransportError(CrawlError):
    """Network failure or timeout while talking to a site."""


class HttpStatusError(CrawlError):
    """A response had a non-success status where success was required."""

    def __init__(self, status: int, url: str, message: str | None = None) -> None:
        self.status = status
        self.url = url
        super().__init__(message or f"HTTP {status} for {url}")


class ParseAmbiguityError(CrawlError):
    """A structurally required element was missing from a page."""


class ConfigurationError(CrawlError):
    """An unexpected value was found where only known values are valid."""


class SiteError(Exception):
    """Base class for site profile errors."""


class SiteValidationError(SiteError):
    """Raised when a YAML site profile fails schema validation."""


class SiteLoadError(SiteError):
    """Raised when a site profile file cannot be read."""


class SiteNotFoundError(SiteError):
    """Raised when a site name is not known to the registry."""


class DuplicateSiteError(SiteError):
    """Raised when two profiles resolve to the same name."""
