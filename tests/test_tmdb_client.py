"""Tests for the TMDB metadata provider client."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from app.config import Settings
from app.constants import MediaType
from app.services.tmdb import ProviderError, TMDBClient


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


def build_settings(**overrides: Any) -> Settings:
    """Return a settings object with defaults suitable for tests."""

    base = {"TMDB_API_KEY": "tmdb-key"}
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://tmdb.example/3"
    )


def test_client_requires_api_key() -> None:
    with pytest.raises(ValueError, match="TMDB API key is required"):
        TMDBClient(Settings(_env_file=None), httpx.AsyncClient())


@pytest.mark.anyio("asyncio")
async def test_fetch_movie_by_primary_id() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "id": 603,
                "title": "The Matrix",
                "imdb_id": "tt0133093",
                "external_ids": {"imdb_id": "tt0133093", "tvdb_id": None},
            },
        )

    async with _client(handler) as http_client:
        client = TMDBClient(build_settings(), http_client)
        media = await client.fetch_by_primary_id(603, MediaType.MOVIE)

    assert media is not None
    assert media.tmdb_id == 603
    assert media.media_type is MediaType.MOVIE
    assert media.imdb_id == "tt0133093"
    assert media.tvdb_id is None
    assert requests[0].url.path == "/3/movie/603"
    assert requests[0].url.params["append_to_response"] == "external_ids"
    assert requests[0].url.params["api_key"] == "tmdb-key"


@pytest.mark.anyio("asyncio")
async def test_fetch_show_reads_tvdb_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/3/tv/1396"
        return httpx.Response(
            200,
            json={
                "id": 1396,
                "name": "Breaking Bad",
                "external_ids": {"imdb_id": "tt0903747", "tvdb_id": 81189},
            },
        )

    async with _client(handler) as http_client:
        client = TMDBClient(build_settings(), http_client)
        media = await client.fetch_by_primary_id(1396, MediaType.TV)

    assert media is not None
    assert media.tvdb_id == 81189
    assert media.imdb_id == "tt0903747"


@pytest.mark.anyio("asyncio")
async def test_not_found_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"status_message": "not found"})

    async with _client(handler) as http_client:
        client = TMDBClient(build_settings(), http_client)
        assert await client.fetch_by_primary_id(1, MediaType.MOVIE) is None


@pytest.mark.anyio("asyncio")
async def test_server_error_raises_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="maintenance")

    async with _client(handler) as http_client:
        client = TMDBClient(build_settings(), http_client)
        with pytest.raises(ProviderError) as excinfo:
            await client.fetch_by_primary_id(1, MediaType.MOVIE)

    assert excinfo.value.status_code == 503


@pytest.mark.anyio("asyncio")
async def test_fetch_by_public_id_follows_find_results() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.path == "/3/find/tt0903747":
            assert request.url.params["external_source"] == "imdb_id"
            return httpx.Response(
                200,
                json={"movie_results": [], "tv_results": [{"id": 1396}]},
            )
        return httpx.Response(
            200,
            json={"id": 1396, "external_ids": {"tvdb_id": 81189}},
        )

    async with _client(handler) as http_client:
        client = TMDBClient(build_settings(), http_client)
        media = await client.fetch_by_public_id("tt0903747")

    assert paths == ["/3/find/tt0903747", "/3/tv/1396"]
    assert media is not None
    assert media.media_type is MediaType.TV
    assert media.tmdb_id == 1396
    # The looked-up id is kept when the detail payload omits it.
    assert media.imdb_id == "tt0903747"


@pytest.mark.anyio("asyncio")
async def test_fetch_by_public_id_without_results() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"movie_results": [], "tv_results": []})

    async with _client(handler) as http_client:
        client = TMDBClient(build_settings(), http_client)
        assert await client.fetch_by_public_id("tt0000000") is None
