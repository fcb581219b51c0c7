from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

from tmdb_cli.core.errors import ValidationError
from tmdb_cli.models.movie import Movie
from tmdb_cli.services.query_builder import clean_value

SORT_ORDERS = ("asc", "desc")
_SORT_FORMAT = 'expected "field,order", e.g. "average,desc" or "date,asc"'


def _release_date_key(movie: Movie) -> date:
    try:
        return date.fromisoformat(movie.release_date)
    except ValueError:
        # unknown dates sort as the oldest
        return date.min


SORT_KEYS: dict[str, Callable[[Movie], Any]] = {
    "date": _release_date_key,
    "otitle": lambda movie: movie.original_title,
    "title": lambda movie: movie.title,
    "average": lambda movie: movie.vote_average,
    "votes": lambda movie: movie.vote_count,
}


def deduplicate(movies: Iterable[Movie]) -> list[Movie]:
    seen: set[int] = set()
    unique: list[Movie] = []
    for movie in movies:
        if movie.id in seen:
            continue
        seen.add(movie.id)
        unique.append(movie)
    return unique


def parse_sort(param: str) -> tuple[Callable[[Movie], Any], bool]:
    """Validate a ``"field,order"`` string and return ``(key, reverse)`` for :func:`sorted`."""
    parts = [part.strip() for part in clean_value(param).split(",")]
    if len(parts) != 2:
        raise ValidationError("invalid_sort", f"sort format: {_SORT_FORMAT}", details={"value": param})

    field, order = parts
    key = SORT_KEYS.get(field)
    if key is None:
        raise ValidationError(
            "invalid_sort_field",
            f"sort field must be one of: {', '.join(SORT_KEYS)}",
            details={"value": field, "valid_fields": list(SORT_KEYS)},
        )
    if order not in SORT_ORDERS:
        raise ValidationError(
            "invalid_sort_order",
            f"sort order must be one of: {', '.join(SORT_ORDERS)}",
            details={"value": order, "valid_orders": list(SORT_ORDERS)},
        )
    return key, order == "desc"


def sort_movies(movies: Iterable[Movie], param: str) -> list[Movie]:
    key, reverse = parse_sort(param)
    return sorted(movies, key=key, reverse=reverse)
