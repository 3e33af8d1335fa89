"""Composition root: wires one ``MangaSource`` per site profile."""

from __future__ import annotations

import httpx
import structlog

from mangacrawl.application import MangaSource
from mangacrawl.application.source import Closer
from mangacrawl.domain.ports import PreferencesPort
from mangacrawl.domain.sites import SiteProfile
from mangacrawl.infrastructure.common import HostRateLimiter
from mangacrawl.infrastructure.config.schema import AppConfig
from mangacrawl.infrastructure.crawling import (
    ChapterPageResolver,
    PageCountProber,
    PaginatedCrawler,
    SeriesCrawler,
)
from mangacrawl.infrastructure.http import (
    HttpxTransport,
    PoliteTransport,
    UserAgentRotator,
)
from mangacrawl.infrastructure.preferences import StaticPreferences
from mangacrawl.infrastructure.sites import (
    SiteExtractors,
    SiteRegistry,
    selector_extractors,
)

log = structlog.get_logger(__name__)


def build_registry(config: AppConfig) -> SiteRegistry:
    return SiteRegistry(config.site_dir)


def build_rate_limiter(config: AppConfig, profile: SiteProfile) -> HostRateLimiter:
    """Limiter with the profile's budgets, then config overrides on top."""
    limiter = HostRateLimiter(
        default_permits=config.rate_limit_default_permits,
        default_window_seconds=config.rate_limit_default_window_seconds,
    )
    for budget in profile.rate_limits:
        limiter.configure(budget)
    for budget in config.rate_budget_overrides():
        limiter.configure(budget)
    return limiter


def build_source(
    config: AppConfig,
    site_name: str,
    *,
    registry: SiteRegistry | None = None,
    preferences: PreferencesPort | None = None,
    extractors: SiteExtractors | None = None,
    wrapped_transport: httpx.AsyncBaseTransport | None = None,
) -> MangaSource:
    """Build a ready-to-use source for *site_name*.

    *extractors* replaces the selector-driven callbacks for sites whose
    markup needs custom parsing. *wrapped_transport* is the innermost
    httpx transport (tests pass a mock transport here).
    """
    registry = registry or build_registry(config)
    profile = registry.get(site_name)
    preferences = preferences or StaticPreferences(config.preferences)
    extractors = extractors or selector_extractors(profile)

    rotate = config.http_rotate_user_agent
    if rotate is None:
        rotate = profile.rotate_user_agent

    closers: list[Closer] = []
    rotator: UserAgentRotator | None = None
    if rotate:
        # Separate client: the bootstrap request is not rate-limited.
        ua_client = httpx.AsyncClient(
            transport=wrapped_transport,
            timeout=httpx.Timeout(config.http_timeout_seconds),
            follow_redirects=True,
        )
        rotator = UserAgentRotator(ua_client, config.http_user_agent_list_url)
        closers.append(ua_client.aclose)

    transport = PoliteTransport(
        wrapped=wrapped_transport or httpx.AsyncHTTPTransport(),
        rate_limiter=build_rate_limiter(config, profile),
        user_agents=rotator,
    )
    client = httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": profile.user_agent or config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    site_transport = HttpxTransport(client)
    closers.insert(0, site_transport.aclose)

    log.info(
        "source_built",
        site=profile.name,
        strategy=profile.pages.strategy,
        rate_limits=len(profile.rate_limits),
        rotate_user_agent=rotate,
    )

    return MangaSource(
        profile,
        listing=PaginatedCrawler(profile, site_transport, extractors, preferences),
        series=SeriesCrawler(profile, site_transport, extractors, preferences),
        resolver=ChapterPageResolver(
            profile,
            site_transport,
            preferences,
            prober=PageCountProber(
                site_transport,
                upper_bound=profile.pages.probe_upper_bound,
                headers=profile.headers,
            ),
        ),
        closers=closers,
    )
