"""Adapters to convert Pydantic validation models to domain models."""

from __future__ import annotations

from mangacrawl.domain import sites as domain
from mangacrawl.domain.entities import RateBudget
from mangacrawl.infrastructure.sites import validation_schema as infra


def to_domain_entry_selectors(pydantic: infra.EntrySelectors) -> domain.EntrySelectors:
    return domain.EntrySelectors(
        item=pydantic.item,
        link=pydantic.link,
        title=pydantic.title,
        thumbnail=pydantic.thumbnail,
        thumbnail_attr=pydantic.thumbnail_attr,
        thumbnail_pattern=pydantic.thumbnail_pattern,
    )


def to_domain_endpoint(pydantic: infra.ListingEndpoint) -> domain.ListingEndpoint:
    return domain.ListingEndpoint(
        url=pydantic.url,
        params=tuple(pydantic.params.items()),
        query_param=pydantic.query_param,
        entries=to_domain_entry_selectors(pydantic.entries)
        if pydantic.entries
        else None,
        next_page=pydantic.next_page,
        distinct_titles=pydantic.distinct_titles,
        dedupe_by_thumbnail=pydantic.dedupe_by_thumbnail,
    )


def to_domain_listing(pydantic: infra.ListingConfig) -> domain.ListingConfig:
    return domain.ListingConfig(
        entries=to_domain_entry_selectors(pydantic.entries),
        popular=to_domain_endpoint(pydantic.popular),
        search=to_domain_endpoint(pydantic.search),
        latest=to_domain_endpoint(pydantic.latest) if pydantic.latest else None,
        dedupe_by_thumbnail=pydantic.dedupe_by_thumbnail,
        id_search_prefix=pydantic.id_search_prefix,
        id_search_path=pydantic.id_search_path,
    )


def to_domain_details(pydantic: infra.DetailSelectors) -> domain.DetailSelectors:
    return domain.DetailSelectors(
        title=pydantic.title,
        author=pydantic.author,
        artist=pydantic.artist,
        genres=pydantic.genres,
        description=pydantic.description,
        status=pydantic.status,
        thumbnail=pydantic.thumbnail,
        thumbnail_attr=pydantic.thumbnail_attr,
        ongoing_keywords=tuple(pydantic.ongoing_keywords),
        completed_keywords=tuple(pydantic.completed_keywords),
        alternative_name=pydantic.alternative_name,
    )


def to_domain_chapters(pydantic: infra.ChapterSelectors) -> domain.ChapterSelectors:
    return domain.ChapterSelectors(
        upload=pydantic.upload,
        container=pydantic.container,
        group=pydantic.group,
        heading=pydantic.heading,
        uploads=pydantic.uploads,
        name=pydantic.name,
        number_pattern=pydantic.number_pattern,
        link=pydantic.link,
        form=pydantic.form,
        scanlator=pydantic.scanlator,
        date=pydantic.date,
        date_format=pydantic.date_format,
        one_shot=pydantic.one_shot,
        one_shot_name=pydantic.one_shot_name,
        dedup_keep=pydantic.dedup_keep,
    )


def to_domain_pages(pydantic: infra.PageSelectors) -> domain.PageSelectors:
    return domain.PageSelectors(
        strategy=pydantic.strategy,
        image=pydantic.image,
        lazy_attr=pydantic.lazy_attr,
        page_options=pydantic.page_options,
        page_image=pydantic.page_image,
        token_input=pydantic.token_input,
        token_field=pydantic.token_field,
        utc_offset_hours=pydantic.utc_offset_hours,
        probe_image=pydantic.probe_image,
        probe_upper_bound=pydantic.probe_upper_bound,
    )


def to_domain_filter(pydantic: infra.FilterDefinition) -> domain.Filter:
    """Convert one filter definition (default state) to its domain model."""
    if isinstance(pydantic, infra.SelectFilter):
        return domain.SelectFilter(
            name=pydantic.name,
            param=pydantic.param,
            options=tuple(pydantic.options),
            state=pydantic.state,
        )
    if isinstance(pydantic, infra.SortFilter):
        return domain.SortFilter(
            name=pydantic.name,
            options=tuple(pydantic.options),
            state=pydantic.state,
            ascending=pydantic.ascending,
            item_param=pydantic.item_param,
            dir_param=pydantic.dir_param,
        )
    if isinstance(pydantic, infra.TriStateFilter):
        return domain.TriStateFilter(
            name=pydantic.name, param=pydantic.param, nsfw=pydantic.nsfw
        )
    return domain.GenreGroupFilter(
        name=pydantic.name,
        genres=tuple(domain.GenreOption(name=n, id=i) for n, i in pydantic.genres),
        include_param=pydantic.include_param,
        exclude_param=pydantic.exclude_param,
    )


def to_domain_site_profile(
    pydantic: infra.SiteProfileDefinition,
) -> domain.SiteProfile:
    """Convert a validated site definition to the domain ``SiteProfile``."""
    return domain.SiteProfile(
        name=pydantic.name,
        version=pydantic.version,
        base_url=str(pydantic.base_url).rstrip("/"),
        language=pydantic.language,
        headers=dict(pydantic.headers),
        user_agent=pydantic.user_agent,
        rotate_user_agent=pydantic.rotate_user_agent,
        rate_limits=tuple(
            RateBudget(
                host=r.host, permits=r.permits, window_seconds=r.window_seconds
            )
            for r in pydantic.rate_limits
        ),
        listing=to_domain_listing(pydantic.listing),
        details=to_domain_details(pydantic.details),
        chapters=to_domain_chapters(pydantic.chapters),
        pages=to_domain_pages(pydantic.pages),
        filters=tuple(to_domain_filter(f) for f in pydantic.filters),
        sfw=domain.SfwConfig(params=tuple(pydantic.sfw.params))
        if pydantic.sfw
        else None,
    )
