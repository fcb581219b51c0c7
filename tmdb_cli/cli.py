import argparse
import asyncio
import logging
import sys
from pathlib import Path

from tmdb_cli.core.container import AppContainer
from tmdb_cli.core.errors import CLIError, format_error, unexpected_error
from tmdb_cli.core.logging import configure_logging
from tmdb_cli.core.settings import APP_NAME, APP_VERSION, Settings, load_settings
from tmdb_cli.models.movie import Movie
from tmdb_cli.models.query import QueryParams
from tmdb_cli.services.formatter import render_movies
from tmdb_cli.services.pager import API_MAX_ITEMS
from tmdb_cli.services.sorting import parse_sort, sort_movies

logger = logging.getLogger(__name__)

LIST_FLAGS = {
    "now_playing": ("-n", "--now", "now playing movies"),
    "popular": ("-p", "--pop", "popular movies"),
    "top_rated": ("-t", "--top", "top rated movies"),
    "upcoming": ("-u", "--up", "upcoming movies"),
}

DISCOVER_FLAGS = [
    ("language", "-l", "--language", "original language (not the country!)"),
    ("year", "-y", "--year", "primary release year or dates"),
    ("vote_average", "-a", "--average", "votes average"),
    ("vote_count", "-v", "--votes", "vote counts"),
    ("with_genres", "-g", "--genres", "with one or many genres"),
    ("without_genres", "-w", "--without-genres", "without one or many genres"),
]

DISCOVER_EXAMPLES = """examples:
  tmdb-cli discover -l=en -y=2000,2005 -g=comedy,action -a=6.5,10 -v=100,50000 -m=100 -s=average,desc
  tmdb-cli discover -l=fr -y=1960,gte -g=history -a=7,gte -v=100,gte -m=50 -s=title,asc
  tmdb-cli discover -l=pt -y=1960,lte -w=comedy -a=9.0,lte -v=2000,lte -m=10 -s=votes,asc
"""


async def run_list(args: argparse.Namespace, container: AppContainer) -> list[Movie]:
    url = container.url_builder.list_url(args.category)
    return await container.pager.fetch(url, container.settings.default_max_items)


async def run_discover(args: argparse.Namespace, container: AppContainer) -> list[Movie]:
    params = QueryParams(**{dest: getattr(args, dest) or "" for dest, *_ in DISCOVER_FLAGS})
    url = container.url_builder.discover_url(params)
    if args.sort:
        # reject a bad sort before spending any requests
        parse_sort(args.sort)
    max_items = args.max_items if args.max_items is not None else container.settings.default_max_items
    movies = await container.pager.fetch(url, max_items)
    if args.sort:
        movies = sort_movies(movies, args.sort)
    return movies


async def _execute(args: argparse.Namespace, settings: Settings) -> list[Movie]:
    container = AppContainer(settings)
    try:
        return await args.func(args, container)
    finally:
        await container.close()


def _print_info() -> None:
    print(f"{APP_NAME} v{APP_VERSION}")
    print("A command-line client for The Movie Database (TMDB)")
    print("Licensed under the Apache License v2.0")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tmdb-cli",
        description="Fetch data from The Movie Database (TMDB) and display it in the terminal.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml (default: ~/.tmdb-cli/config.yaml).")
    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="Display a ready-made movie list.")
    group = list_parser.add_mutually_exclusive_group()
    for category, (short, long, help_text) in LIST_FLAGS.items():
        group.add_argument(short, long, dest="category", action="store_const", const=category, help=help_text)
    list_parser.set_defaults(func=run_list, category=None, command_parser=list_parser)

    discover_parser = subparsers.add_parser(
        "discover",
        help="Discover movies based on various criteria.",
        epilog=DISCOVER_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    for dest, short, long, help_text in DISCOVER_FLAGS:
        discover_parser.add_argument(short, long, dest=dest, default=None, help=help_text)
    discover_parser.add_argument("-s", "--sort", default=None, help="sort by field and order, e.g. average,desc")
    discover_parser.add_argument(
        "-m",
        "--max-items",
        type=int,
        default=None,
        help=f"maximum number of movies, default 20, max {API_MAX_ITEMS}",
    )
    discover_parser.set_defaults(func=run_discover, command_parser=discover_parser)

    subparsers.add_parser("info", help="Display version number and licence.")
    return parser


def _has_options(args: argparse.Namespace) -> bool:
    if args.command == "list":
        return args.category is not None
    names = [dest for dest, *_ in DISCOVER_FLAGS] + ["sort", "max_items"]
    return any(getattr(args, name) is not None for name in names)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0
    if args.command == "info":
        _print_info()
        return 0
    if not _has_options(args):
        args.command_parser.print_help()
        return 0

    try:
        settings = load_settings(args.config)
        configure_logging(settings.log_level, settings.log_format)
        movies = asyncio.run(_execute(args, settings))
    except CLIError as exc:
        logger.debug("Command failed", extra={"code": exc.code, "details": exc.details})
        print(format_error(exc), file=sys.stderr)
        return exc.exit_code
    except Exception as exc:
        logger.exception("Unexpected failure", extra={"error_type": exc.__class__.__name__})
        print(format_error(unexpected_error(exc)), file=sys.stderr)
        return 1

    print(render_movies(movies))
    return 0
