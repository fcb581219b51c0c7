import asyncio
import logging
import re

import httpx
from pydantic import ValidationError as PydanticValidationError

from tmdb_cli.core.errors import ConfigError, RateLimitError, UpstreamError
from tmdb_cli.core.settings import Settings
from tmdb_cli.models.movie import ResultPage

logger = logging.getLogger(__name__)

_RETRY_AFTER_RE = re.compile(r"[0-9]+")


def parse_retry_after(value: str | None) -> int | None:
    """Return the ``Retry-After`` delay in whole seconds, or None when it isn't a plain integer."""
    if value is None:
        return None
    value = value.strip()
    if not _RETRY_AFTER_RE.fullmatch(value):
        return None
    return int(value)


class TMDBClient:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._client = httpx.AsyncClient(timeout=settings.tmdb_timeout_seconds, transport=transport)
        self._sleep = asyncio.sleep

    async def close(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.tmdb_api_key}",
            "Content-Type": "application/json",
        }

    async def _send(self, url: str) -> httpx.Response:
        try:
            request = self._client.build_request("GET", url, headers=self._headers())
        except httpx.InvalidURL as exc:
            raise UpstreamError("tmdb_invalid_request", "request error: invalid URL", details={"url": url}) from exc

        try:
            return await self._client.send(request)
        except httpx.UnsupportedProtocol as exc:
            raise UpstreamError("tmdb_invalid_request", f"request error: {exc}", details={"url": url}) from exc
        except httpx.TimeoutException as exc:
            raise UpstreamError(
                "tmdb_timeout",
                f"request error: TMDB did not answer within {self.settings.tmdb_timeout_seconds:g}s",
                details={"url": url, "error_type": exc.__class__.__name__},
            ) from exc
        except httpx.TransportError as exc:
            raise UpstreamError(
                "tmdb_unreachable",
                f"request error: {exc}",
                details={"url": url, "error_type": exc.__class__.__name__},
            ) from exc

    def _decode(self, url: str, response: httpx.Response) -> ResultPage:
        try:
            return ResultPage.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            raise UpstreamError(
                "tmdb_decode_error",
                "decode response: unexpected TMDB payload",
                details={"url": url, "error": str(exc)[:200]},
            ) from exc

    async def fetch_page(self, url: str) -> ResultPage:
        if not self.settings.tmdb_api_key:
            raise ConfigError("missing_api_key", "TMDB API key is not set")

        backoff_seconds = self.settings.tmdb_initial_backoff_seconds
        max_attempts = self.settings.tmdb_max_retries
        for attempt in range(1, max_attempts + 1):
            response = await self._send(url)
            status = response.status_code

            if status >= 500:
                logger.warning("TMDB server error", extra={"url": url, "status_code": status})
                raise UpstreamError(
                    "tmdb_server_error",
                    f"TMDB API server error: {status} {response.reason_phrase}",
                    details={"url": url, "status_code": status},
                )

            if status == 429:
                retry_after = parse_retry_after(response.headers.get("Retry-After"))
                if retry_after is not None:
                    if retry_after > self.settings.tmdb_max_retry_after_seconds:
                        raise RateLimitError(
                            "tmdb_rate_limited",
                            f"TMDB asked to wait {retry_after}s, longer than the allowed "
                            f"{self.settings.tmdb_max_retry_after_seconds:g}s",
                            details={"url": url, "retry_after": retry_after},
                        )
                    if attempt == max_attempts:
                        break
                    delay = retry_after if retry_after > 0 else backoff_seconds
                    logger.info(
                        "TMDB rate limited, retrying",
                        extra={"url": url, "attempt": attempt, "delay_seconds": delay},
                    )
                    await self._sleep(delay)
                    backoff_seconds *= 2
                    continue

            if status == 401:
                raise UpstreamError(
                    "tmdb_auth_error",
                    "TMDB API client error: API key is invalid",
                    details={"url": url, "status_code": status},
                )

            if status >= 400:
                raise UpstreamError(
                    "tmdb_client_error",
                    f"TMDB API client error: {status} {response.reason_phrase}",
                    details={"url": url, "status_code": status, "response": response.text[:200]},
                )

            return self._decode(url, response)

        raise RateLimitError(
            "tmdb_retries_exhausted",
            "TMDB request retries exhausted",
            details={"url": url, "attempts": max_attempts},
        )
