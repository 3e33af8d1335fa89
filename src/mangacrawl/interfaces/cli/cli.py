from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable, Sequence
from dataclasses import asdict, is_dataclass, replace
from pathlib import Path
from typing import Any, TextIO

import structlog

from mangacrawl.application import MangaSource
from mangacrawl.domain.exceptions import CrawlError, SiteError
from mangacrawl.domain.sites import (
    Filter,
    GenreGroupFilter,
    SelectFilter,
    SortFilter,
    TriState,
    TriStateFilter,
)
from mangacrawl.infrastructure.config import AppConfig, load_config
from mangacrawl.infrastructure.logging.setup import configure_logging
from mangacrawl.interfaces.composition import build_registry, build_source

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mangacrawl")

    # Config wiring flags (no business logic)
    parser.add_argument("--config", default=None, help="Path to YAML config file.")
    parser.add_argument("--dotenv", default=None, help="Path to .env file.")
    parser.add_argument(
        "--site-dir", default=None, help="Override site profiles directory."
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    # Preferences
    parser.add_argument(
        "--render-mode", default=None, choices=["cascade", "paginated"]
    )
    parser.add_argument("--dedup-mode", default=None, choices=["all", "one"])
    parser.add_argument(
        "--sfw", default=None, action="store_true", help="Enable SFW mode."
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("sites", help="List available site profiles.")

    for name in ("popular", "latest", "search"):
        p = sub.add_parser(name, help=f"Fetch one {name} listing page.")
        p.add_argument("site")
        if name == "search":
            p.add_argument("query", nargs="?", default="")
        p.add_argument("--page", type=int, default=1)
        p.add_argument(
            "--filter",
            action="append",
            default=[],
            metavar="PARAM=VALUE",
            help="Select/tri-state filter by query parameter (repeatable).",
        )
        p.add_argument(
            "--sort", default=None, metavar="VALUE[:asc]", help="Sort option value."
        )
        p.add_argument("--genre", action="append", default=[], metavar="ID")
        p.add_argument("--exclude-genre", action="append", default=[], metavar="ID")

    for name, arg, text in (
        ("details", "path", "Fetch series details."),
        ("chapters", "path", "Fetch the chapter list of a series."),
        ("pages", "chapter", "Resolve the pages of a chapter."),
    ):
        p = sub.add_parser(name, help=text)
        p.add_argument("site")
        p.add_argument(arg)
        if name == "pages":
            p.add_argument(
                "--images",
                action="store_true",
                help="Resolve image URLs of paginated pages as well.",
            )

    return parser.parse_args(argv)


def apply_filter_args(
    filters: Sequence[Filter],
    assignments: Sequence[str],
    *,
    sort: str | None = None,
    genres: Sequence[str] = (),
    excluded_genres: Sequence[str] = (),
) -> list[Filter]:
    """Return *filters* with states set from command-line values.

    ``PARAM=VALUE`` selects an option of a select filter, or sets a
    tri-state filter to ``include``/``exclude``/``ignore``.
    """
    values: dict[str, str] = {}
    for item in assignments:
        param, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"Expected PARAM=VALUE, got {item!r}")
        values[param] = value

    genre_states = {gid: TriState.INCLUDE for gid in genres}
    genre_states.update({gid: TriState.EXCLUDE for gid in excluded_genres})

    out: list[Filter] = []
    for f in filters:
        if isinstance(f, SelectFilter) and f.param in values:
            f = f.with_value(values.pop(f.param))
        elif isinstance(f, TriStateFilter) and f.param in values:
            f = replace(f, state=TriState(values.pop(f.param)))
        elif isinstance(f, SortFilter) and sort is not None:
            value, _, direction = sort.partition(":")
            index = next(
                (i for i, (_, v) in enumerate(f.options) if v == value), None
            )
            if index is None:
                raise ValueError(f"{f.name}: unknown option {value!r}")
            f = replace(f, state=index, ascending=direction == "asc")
        elif isinstance(f, GenreGroupFilter) and genre_states:
            f = f.with_states(**genre_states)
        out.append(f)

    if values:
        raise ValueError(f"Unknown filter parameter(s): {', '.join(sorted(values))}")
    return out


def _to_json(obj: Any) -> str:
    if is_dataclass(obj) and not isinstance(obj, type):
        obj = asdict(obj)
    return json.dumps(obj, ensure_ascii=False, default=str)


def _emit(items: Iterable[Any], out: TextIO) -> None:
    for item in items:
        out.write(_to_json(item) + "\n")


async def _run_listing(source: MangaSource, args: argparse.Namespace) -> Any:
    filters = apply_filter_args(
        source.filters(),
        args.filter,
        sort=args.sort,
        genres=args.genre,
        excluded_genres=args.exclude_genre,
    )
    if args.command == "search":
        return await source.search(args.page, args.query, filters)

    # Browse endpoints carry their own fixed params; only explicit filters apply.
    explicit = args.filter or args.sort or args.genre or args.exclude_genre
    if args.command == "popular":
        return await source.popular(args.page, filters if explicit else None)
    return await source.latest(args.page, filters if explicit else None)


async def run_command(
    config: AppConfig, args: argparse.Namespace, out: TextIO = sys.stdout
) -> None:
    if args.command == "sites":
        profiles = build_registry(config).load_all()
        _emit(
            (
                {"name": p.name, "base_url": p.base_url, "language": p.language}
                for p in profiles
            ),
            out,
        )
        return

    async with build_source(config, args.site) as source:
        if args.command in {"popular", "latest", "search"}:
            listing = await _run_listing(source, args)
            _emit(listing.entries, out)
            _emit([{"has_next": listing.has_next}], out)
        elif args.command == "details":
            _emit([await source.details(args.path)], out)
        elif args.command == "chapters":
            _emit(await source.chapters(args.path), out)
        elif args.command == "pages":
            pages = await source.pages(args.chapter)
            if args.images:
                pages = [
                    replace(page, image_url=await source.image_url(page))
                    for page in pages
                ]
            _emit(pages, out)


def start(argv: Iterable[str] | None = None) -> int:
    """Process entrypoint."""
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    cli_overrides: dict[str, Any] = {}
    if args.site_dir:
        cli_overrides["site_dir"] = args.site_dir
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format
    if args.render_mode:
        cli_overrides["render_mode"] = args.render_mode
    if args.dedup_mode:
        cli_overrides["dedup_mode"] = args.dedup_mode
    if args.sfw:
        cli_overrides["sfw_mode"] = True

    config = load_config(
        config_path=config_path,
        dotenv_path=dotenv_path,
        cli_overrides=cli_overrides,
    )
    configure_logging(config)

    try:
        asyncio.run(run_command(config, args))
    except (CrawlError, SiteError, ValueError) as e:
        log.error("command_failed", command=args.command, error=str(e))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(start())
