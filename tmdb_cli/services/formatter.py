import io
from collections.abc import Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from tmdb_cli.models.movie import Movie

NO_RESULTS_MESSAGE = "No results available. Please try another query."


def build_table(movies: Sequence[Movie]) -> Table:
    table = Table(box=box.SQUARE, show_lines=True)
    table.add_column("#", justify="right", no_wrap=True)
    table.add_column("Original Title", justify="left")
    table.add_column("Release Date", justify="left", no_wrap=True)
    table.add_column("Title", justify="left")
    table.add_column("Average", justify="left", no_wrap=True)
    table.add_column("Votes", justify="left", no_wrap=True)
    for index, movie in enumerate(movies, start=1):
        table.add_row(
            str(index),
            movie.original_title,
            movie.release_date,
            movie.title,
            f"{movie.vote_average:.1f}",
            str(movie.vote_count),
        )
    return table


def render_movies(movies: Sequence[Movie], width: int | None = None) -> str:
    if not movies:
        return NO_RESULTS_MESSAGE
    buffer = io.StringIO()
    console = Console(file=buffer, width=width, highlight=False, color_system=None)
    console.print(build_table(movies))
    return buffer.getvalue()
