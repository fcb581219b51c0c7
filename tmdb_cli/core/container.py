import logging

import httpx

from tmdb_cli.core.settings import Settings
from tmdb_cli.services.pager import MoviePager
from tmdb_cli.services.query_builder import URLBuilder
from tmdb_cli.services.tmdb_client import TMDBClient

logger = logging.getLogger(__name__)


class AppContainer:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings

        self.url_builder = URLBuilder(settings.tmdb_base_url)
        self.tmdb_client = TMDBClient(settings, transport=transport)
        self.pager = MoviePager(self.tmdb_client)

        logger.debug(
            "App container initialized",
            extra={
                "tmdb_base_url": settings.tmdb_base_url,
                "tmdb_timeout_seconds": settings.tmdb_timeout_seconds,
                "tmdb_max_retries": settings.tmdb_max_retries,
                "tmdb_max_retry_after_seconds": settings.tmdb_max_retry_after_seconds,
            },
        )

    async def close(self) -> None:
        await self.tmdb_client.close()
