import asyncio
import logging
import math
from typing import Protocol

from tmdb_cli.core.errors import ValidationError
from tmdb_cli.models.movie import Movie, ResultPage
from tmdb_cli.services.sorting import deduplicate

logger = logging.getLogger(__name__)

FIRST_PAGE = 1
RESULTS_PER_PAGE = 20
MAX_API_CALLS = 20
API_MAX_ITEMS = RESULTS_PER_PAGE * MAX_API_CALLS


class PageFetcher(Protocol):
    async def fetch_page(self, url: str) -> ResultPage: ...


def page_url(url: str, page: int) -> str:
    if "?" not in url:
        return f"{url}?page={page}"
    if url.endswith(("?", "&")):
        return f"{url}page={page}"
    return f"{url}&page={page}"


class _PageAccumulator:
    """Collects later pages as their fetches complete."""

    def __init__(self) -> None:
        self._pages: list[tuple[int, list[Movie]]] = []
        self._lock = asyncio.Lock()

    async def add(self, page: int, movies: list[Movie]) -> None:
        async with self._lock:
            self._pages.append((page, movies))

    def merged(self) -> list[Movie]:
        # completion order is arbitrary, page order is what callers expect
        merged: list[Movie] = []
        for _, movies in sorted(self._pages, key=lambda entry: entry[0]):
            merged.extend(movies)
        return merged


class MoviePager:
    def __init__(
        self,
        client: PageFetcher,
        page_size: int = RESULTS_PER_PAGE,
        max_pages: int = MAX_API_CALLS,
    ):
        self.client = client
        self.page_size = page_size
        self.max_pages = max_pages

    @property
    def max_items(self) -> int:
        return self.page_size * self.max_pages

    def _validate(self, max_items: int) -> None:
        if max_items > self.max_items:
            raise ValidationError(
                "max_items_too_large",
                f"movies can't be more than {self.max_items}",
                details={"max_items": max_items},
            )
        if max_items < 1:
            raise ValidationError(
                "max_items_too_small",
                "movies must be at least 1",
                details={"max_items": max_items},
            )

    async def fetch(self, url: str, max_items: int) -> list[Movie]:
        self._validate(max_items)

        first = await self.client.fetch_page(page_url(url, FIRST_PAGE))
        if len(first.results) >= max_items:
            return deduplicate(first.results[:max_items])

        pages_needed = math.ceil(max_items / self.page_size)
        last_page = min(pages_needed, max(first.total_pages, FIRST_PAGE))
        logger.info(
            "Fetching remaining pages",
            extra={"url": url, "max_items": max_items, "pages_needed": pages_needed, "last_page": last_page},
        )

        accumulator = _PageAccumulator()

        async def _fetch(page: int) -> None:
            result = await self.client.fetch_page(page_url(url, page))
            await accumulator.add(page, result.results)

        tasks = [asyncio.create_task(_fetch(page)) for page in range(FIRST_PAGE + 1, last_page + 1)]
        try:
            await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        movies = list(first.results) + accumulator.merged()
        return deduplicate(movies[:max_items])
