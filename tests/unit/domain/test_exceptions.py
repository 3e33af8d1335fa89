"""Tests for the domain exception hierarchy."""

from __future__ import annotations

from mangacrawl.domain.exceptions import (
    ConfigurationError,
    CrawlError,
    DuplicateSiteError,
    HttpStatusError,
    ParseAmbiguityError,
    SiteError,
    SiteNotFoundError,
    TransportError,
)


def test_crawl_errors_share_base() -> None:
    errors = (TransportError, HttpStatusError, ParseAmbiguityError, ConfigurationError)
    for exc in errors:
        assert issubclass(exc, CrawlError)


def test_site_errors_share_base() -> None:
    assert issubclass(SiteNotFoundError, SiteError)
    assert issubclass(DuplicateSiteError, SiteError)
    assert not issubclass(SiteError, CrawlError)


def test_http_status_error_carries_status_and_url() -> None:
    err = HttpStatusError(429, "https://manga.example.com/library")
    assert err.status == 429
    assert err.url == "https://manga.example.com/library"
    assert str(err) == "HTTP 429 for https://manga.example.com/library"


def test_http_status_error_custom_message() -> None:
    err = HttpStatusError(500, "https://x", "lectormanga: HTTP 500")
    assert str(err) == "lectormanga: HTTP 500"
