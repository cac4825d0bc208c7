"""
Client for the RAWG game catalog.

RAWG is key-authenticated (``key`` query parameter) and returns paged lists
as ``{count, next, previous, results[]}``. Any non-2xx answer or transport
failure surfaces as CatalogAPIError; nothing is retried.
"""

from collections.abc import AsyncIterator
from typing import Any

import httpx

from gamerec.core.config import get_settings
from gamerec.core.errors import CatalogAPIError
from gamerec.core.logging import get_logger

settings = get_settings()
logger = get_logger(__name__)

# Query parameters forwarded to /games as-is
GAME_FILTERS = (
    "page",
    "page_size",
    "ordering",
    "search",
    "genres",
    "platforms",
    "tags",
    "dates",
    "developers",
    "publishers",
)


class RawgClient:
    """Async client for the RAWG REST API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = settings.RAWG_API_KEY if api_key is None else api_key
        self.client = httpx.AsyncClient(
            base_url=base_url or settings.RAWG_BASE_URL,
            timeout=timeout or settings.RAWG_TIMEOUT_SECONDS,
            headers={"User-Agent": "GameTracker/1.0"},
            transport=transport,
        )

    async def close(self):
        await self.client.aclose()

    async def list_games(self, **filters: Any) -> dict:
        """
        Fetch one page of games.

        Unknown filter names and None values are dropped.

        Returns:
            The raw catalog page: {count, next, previous, results}
        """
        params = {
            name: value
            for name, value in filters.items()
            if name in GAME_FILTERS and value not in (None, "")
        }
        data = await self._get("/games", params)
        data.setdefault("results", [])
        return data

    async def get_game(self, game_id: int) -> dict:
        return await self._get(f"/games/{game_id}")

    async def get_genres(self) -> list[dict]:
        data = await self._get("/genres")
        return data.get("results", [])

    async def get_platforms(self) -> list[dict]:
        data = await self._get("/platforms")
        return data.get("results", [])

    async def _get(self, path: str, params: dict | None = None) -> dict:
        query = dict(params or {})
        if self.api_key:
            query["key"] = self.api_key

        try:
            response = await self.client.get(path, params=query)
        except httpx.HTTPError as e:
            logger.error(
                "Catalog request failed",
                extra={"extra_fields": {"path": path, "error": str(e)}},
            )
            raise CatalogAPIError(f"Catalog request failed: {e}") from e

        if response.status_code >= 400:
            logger.warning(
                "Catalog returned error status",
                extra={"extra_fields": {"path": path, "status_code": response.status_code}},
            )
            raise CatalogAPIError(
                f"Catalog returned {response.status_code} for {path}",
                status_code=response.status_code,
            )

        return response.json()


async def get_catalog_client() -> AsyncIterator[RawgClient]:
    """FastAPI dependency yielding a client that is closed after the request."""
    client = RawgClient()
    try:
        yield client
    finally:
        await client.close()
