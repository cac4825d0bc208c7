"""Tests for the RAWG catalog client."""

import asyncio

import httpx
import pytest

from gamerec.core.errors import CatalogAPIError
from gamerec.services.catalog_client import RawgClient


def make_client(handler, api_key="abc123") -> RawgClient:
    return RawgClient(
        api_key=api_key,
        base_url="https://rawg.test/api",
        transport=httpx.MockTransport(handler),
    )


def run(coro):
    return asyncio.run(coro)


class TestListGames:
    """Test query building for /games."""

    def test_drops_unknown_and_empty_filters(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(dict(request.url.params))
            return httpx.Response(200, json={"count": 0, "next": None, "previous": None, "results": []})

        client = make_client(handler)
        run(client.list_games(page=1, search="", genres=None, platforms="4", evil="1"))

        assert seen == [{"page": "1", "platforms": "4", "key": "abc123"}]

    def test_missing_results_defaults_to_empty(self):
        client = make_client(lambda request: httpx.Response(200, json={"count": 0}))

        data = run(client.list_games())

        assert data["results"] == []

    def test_no_key_when_unset(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(dict(request.url.params))
            return httpx.Response(200, json={"results": []})

        run(make_client(handler, api_key="").get_genres())

        assert seen == [{}]


class TestErrors:
    """Test error translation."""

    def test_error_status(self):
        client = make_client(lambda request: httpx.Response(503, json={"error": "down"}))

        with pytest.raises(CatalogAPIError) as exc_info:
            run(client.get_game(1))

        assert exc_info.value.status_code == 503

    def test_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(CatalogAPIError) as exc_info:
            run(make_client(handler).get_platforms())

        assert exc_info.value.status_code is None
