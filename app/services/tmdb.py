"""Utilities for resolving metadata from The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from ..config import Settings
from ..constants import MediaType

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Raised when TMDB answers with an unexpected error."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class ProviderMedia:
    """Normalized view of a TMDB title and its cross-reference ids."""

    tmdb_id: int
    media_type: MediaType
    tvdb_id: int | None = None
    imdb_id: str | None = None


class MetadataProvider(Protocol):
    """Lookup service consulted when no local media record matches."""

    async def fetch_by_primary_id(
        self, tmdb_id: int, media_type: MediaType
    ) -> ProviderMedia | None: ...

    async def fetch_by_public_id(self, imdb_id: str) -> ProviderMedia | None: ...


class TMDBClient:
    """Client responsible for fetching TMDB titles by identifier."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client

    async def fetch_by_primary_id(
        self, tmdb_id: int, media_type: MediaType
    ) -> ProviderMedia | None:
        """Return the title with ``tmdb_id`` or ``None`` when TMDB does not know it."""

        endpoint = f"/{'movie' if media_type == MediaType.MOVIE else 'tv'}/{tmdb_id}"
        payload = await self._get(endpoint, {"append_to_response": "external_ids"})
        if payload is None:
            return None
        return self._to_media(payload, MediaType(media_type))

    async def fetch_by_public_id(self, imdb_id: str) -> ProviderMedia | None:
        """Find a title by IMDb id, preferring movie matches over shows."""

        payload = await self._get(f"/find/{imdb_id}", {"external_source": "imdb_id"})
        if payload is None:
            return None

        candidates = (
            (MediaType.MOVIE, payload.get("movie_results")),
            (MediaType.TV, payload.get("tv_results")),
        )
        for media_type, results in candidates:
            if not isinstance(results, list) or not results:
                continue
            first = results[0]
            if not isinstance(first, dict) or first.get("id") is None:
                continue
            details = await self.fetch_by_primary_id(int(first["id"]), media_type)
            if details is None:
                continue
            if details.imdb_id is None:
                details.imdb_id = imdb_id
            return details

        logger.debug("TMDB has no title for IMDb id %s", imdb_id)
        return None

    async def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any] | None:
        query = {"api_key": self._settings.tmdb_api_key, "language": "en-US", **params}
        response = await self._client.get(endpoint, params=query)
        if response.status_code == 404:
            logger.debug("TMDB lookup %s returned 404", endpoint)
            return None
        if response.status_code >= 400:
            logger.warning(
                "TMDB lookup %s failed: %s %s",
                endpoint,
                response.status_code,
                response.text[:200],
            )
            raise ProviderError(
                f"TMDB request {endpoint} failed with {response.status_code}",
                status_code=response.status_code,
            )
        data = response.json()
        if not isinstance(data, dict):
            raise ProviderError(f"TMDB request {endpoint} returned an unexpected body")
        return data

    @staticmethod
    def _to_media(payload: dict[str, Any], media_type: MediaType) -> ProviderMedia:
        external = payload.get("external_ids") or {}
        imdb_id = payload.get("imdb_id") or external.get("imdb_id") or None
        tvdb_id = external.get("tvdb_id")
        try:
            tvdb_value = int(tvdb_id) if tvdb_id else None
        except (TypeError, ValueError):
            tvdb_value = None
        return ProviderMedia(
            tmdb_id=int(payload["id"]),
            media_type=media_type,
            tvdb_id=tvdb_value,
            imdb_id=str(imdb_id) if imdb_id else None,
        )
