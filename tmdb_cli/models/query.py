from typing import Literal

from pydantic import BaseModel

MovieListCategory = Literal["now_playing", "popular", "top_rated", "upcoming"]


class QueryParams(BaseModel):
    """Raw discover filters exactly as typed by the user.

    Every field is optional; an empty string means "no filter". Parsing and
    validation happen in the URL builder, not here.
    """

    language: str = ""
    year: str = ""
    vote_average: str = ""
    vote_count: str = ""
    with_genres: str = ""
    without_genres: str = ""
