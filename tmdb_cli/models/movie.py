from pydantic import BaseModel, ConfigDict, Field


class Movie(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    original_title: str = ""
    release_date: str = ""
    title: str = ""
    vote_average: float = Field(default=0.0, ge=0.0, le=10.0)
    vote_count: int = Field(default=0, ge=0)


class ResultPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(ge=1)
    results: list[Movie] = Field(default_factory=list)
    # TMDB reports 0 pages for an empty result set
    total_pages: int = Field(default=0, ge=0)
    total_results: int = Field(default=0, ge=0)
