import re
from collections.abc import Callable
from datetime import date
from types import MappingProxyType
from typing import get_args
from urllib.parse import quote

from tmdb_cli.core.errors import ValidationError
from tmdb_cli.models.query import MovieListCategory, QueryParams

EARLIEST_MOVIE_YEAR = 1888
MIN_VOTE_AVERAGE = 0.0
MAX_VOTE_AVERAGE = 10.0
MIN_VOTE_COUNT = 0
ISO_639_1_LENGTH = 2
ISO_639_1_HELP = "https://en.wikipedia.org/wiki/List_of_ISO_639-1_codes"

COMPARATORS = ("gte", "lte")
MOVIE_LISTS: tuple[str, ...] = get_args(MovieListCategory)

GENRES = MappingProxyType(
    {
        "action": 28,
        "adventure": 12,
        "animation": 16,
        "comedy": 35,
        "crime": 80,
        "documentary": 99,
        "drama": 18,
        "family": 10751,
        "fantasy": 14,
        "history": 36,
        "horror": 27,
        "music": 10402,
        "mystery": 9648,
        "romance": 10749,
        "science-fiction": 878,
        "tv-movie": 10770,
        "thriller": 53,
        "war": 10752,
        "western": 37,
    }
)

_YEAR_FORMAT = '"2000", "2000,2010", "2000,gte", or "2000,lte"'
_VOTE_AVERAGE_FORMAT = '"7.0,8.0", "7.5,gte", or "7.5,lte"'
_VOTE_COUNT_FORMAT = '"500,1000", "500,gte", or "500,lte"'

_YEAR_RE = re.compile(r"[0-9]{4}")
_INTEGER_RE = re.compile(r"-?[0-9]+")
_DECIMAL_RE = re.compile(r"-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][-+]?[0-9]+)?")


def clean_value(value: str) -> str:
    return value.strip().strip('",').strip()


def _split(value: str) -> list[str]:
    return [part.strip() for part in clean_value(value).split(",")]


def _fragment(key: str, value: str) -> str:
    return f"{key}={quote(value, safe=',.-')}&"


def _current_year() -> int:
    return date.today().year


def validate_year(value: str) -> str:
    if not _YEAR_RE.fullmatch(value):
        raise ValidationError("invalid_year", f"year format: use {_YEAR_FORMAT}", details={"field": "year"})
    year = int(value)
    current_year = _current_year()
    if year < EARLIEST_MOVIE_YEAR or year > current_year:
        raise ValidationError(
            "year_out_of_range",
            f"year must be between {EARLIEST_MOVIE_YEAR} and {current_year}",
            details={"field": "year", "value": value},
        )
    return value


def validate_vote_average(value: str) -> str:
    if not _DECIMAL_RE.fullmatch(value):
        raise ValidationError(
            "invalid_vote_average",
            'vote average must be a float, e.g. "7.5"',
            details={"field": "vote_average", "value": value},
        )
    parsed = float(value)
    if not MIN_VOTE_AVERAGE <= parsed <= MAX_VOTE_AVERAGE:
        raise ValidationError(
            "vote_average_out_of_range",
            f"vote average must be between {MIN_VOTE_AVERAGE:g} and {MAX_VOTE_AVERAGE:g}, use {_VOTE_AVERAGE_FORMAT}",
            details={"field": "vote_average", "value": value},
        )
    return value


def validate_vote_count(value: str) -> str:
    if not _INTEGER_RE.fullmatch(value):
        raise ValidationError(
            "invalid_vote_count",
            'vote count must be an integer, e.g. "1000"',
            details={"field": "vote_count", "value": value},
        )
    if int(value) < MIN_VOTE_COUNT:
        raise ValidationError(
            "vote_count_out_of_range",
            f"vote count must be >= {MIN_VOTE_COUNT}",
            details={"field": "vote_count", "value": value},
        )
    return value


def validate_genre(name: str) -> int:
    genre_id = GENRES.get(name)
    if genre_id is None:
        valid = sorted(GENRES)
        listing = "".join(f"\t- {genre}\n" for genre in valid)
        raise ValidationError(
            "invalid_genre",
            f"genre must be one of these genres:\n{listing}",
            details={"genre": name, "valid_genres": valid},
        )
    return genre_id


def is_comparator(value: str) -> bool:
    return value in COMPARATORS


def build_language(value: str) -> str:
    code = clean_value(value)
    if len(code) != ISO_639_1_LENGTH:
        raise ValidationError(
            "invalid_language",
            f"language must be a 2-letter ISO 639-1 code (see {ISO_639_1_HELP})",
            details={"field": "language", "value": code},
        )
    return _fragment("with_original_language", code)


def build_year(value: str) -> str:
    parts = _split(value)
    if len(parts) > 2:
        raise ValidationError("invalid_year", f"year format: use {_YEAR_FORMAT}", details={"field": "year"})
    year = validate_year(parts[0])
    if len(parts) == 1:
        return _fragment("primary_release_year", year)
    if is_comparator(parts[1]):
        return _fragment(f"primary_release_date.{parts[1]}", f"{year}-01-01")
    end_year = validate_year(parts[1])
    return _fragment("primary_release_date.gte", f"{year}-01-01") + _fragment(
        "primary_release_date.lte", f"{end_year}-12-31"
    )


def build_vote_average(value: str) -> str:
    parts = _split(value)
    if len(parts) != 2:
        raise ValidationError(
            "invalid_vote_average",
            f"vote average format: use {_VOTE_AVERAGE_FORMAT}",
            details={"field": "vote_average"},
        )
    lower = validate_vote_average(parts[0])
    if is_comparator(parts[1]):
        return _fragment(f"vote_average.{parts[1]}", lower)
    upper = validate_vote_average(parts[1])
    return _fragment("vote_average.gte", lower) + _fragment("vote_average.lte", upper)


def build_vote_count(value: str) -> str:
    parts = _split(value)
    if len(parts) > 2:
        raise ValidationError(
            "invalid_vote_count", f"vote count format: use {_VOTE_COUNT_FORMAT}", details={"field": "vote_count"}
        )
    lower = validate_vote_count(parts[0])
    if len(parts) == 1:
        # a bare count is ambiguous: TMDB has no exact vote_count filter
        raise ValidationError(
            "invalid_vote_count", f"vote count format: use {_VOTE_COUNT_FORMAT}", details={"field": "vote_count"}
        )
    if is_comparator(parts[1]):
        return _fragment(f"vote_count.{parts[1]}", lower)
    upper = validate_vote_count(parts[1])
    return _fragment("vote_count.gte", lower) + _fragment("vote_count.lte", upper)


def build_genres(value: str, prefix: str) -> str:
    if prefix not in ("with", "without"):
        raise ValidationError("invalid_genre_prefix", 'genre prefix must be "with" or "without"')
    ids = [str(validate_genre(name)) for name in _split(value)]
    return _fragment(f"{prefix}_genres", ",".join(ids))


class URLBuilder:
    def __init__(self, base_url: str = "https://api.themoviedb.org/3"):
        self.base_url = base_url.rstrip("/")
        self.list_path = "/movie/{category}?"
        self.discover_path = "/discover/movie?"

    def list_url(self, category: MovieListCategory | str) -> str:
        if category not in MOVIE_LISTS:
            raise ValidationError(
                "invalid_movie_list",
                f"movie list parameter must be one of: {', '.join(MOVIE_LISTS)}",
                details={"value": category, "valid_lists": list(MOVIE_LISTS)},
            )
        return self.base_url + self.list_path.format(category=category)

    def discover_url(self, params: QueryParams) -> str:
        handlers: list[tuple[str, Callable[[str], str]]] = [
            (params.language, build_language),
            (params.year, build_year),
            (params.vote_average, build_vote_average),
            (params.vote_count, build_vote_count),
            (params.with_genres, lambda value: build_genres(value, "with")),
            (params.without_genres, lambda value: build_genres(value, "without")),
        ]
        url = self.base_url + self.discover_path
        for raw, handle in handlers:
            if raw:
                url += handle(raw)
        return url.removesuffix("&")
