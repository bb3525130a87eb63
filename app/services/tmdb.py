"""Utilities for querying The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..models import MediaType
from .errors import TMDBAPIError

logger = logging.getLogger(__name__)


class TMDBClient:
    """Client responsible for TMDB searches and related-title listings."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client

    async def search(
        self,
        media_type: MediaType,
        query: str,
        *,
        language: str | None = None,
        page: int = 1,
        year: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return raw search results in TMDB's own ranking order."""

        endpoint = "/search/movie" if media_type == "movie" else "/search/tv"
        params: dict[str, Any] = {
            "query": query,
            "include_adult": "false",
            "language": language or self._settings.tmdb_language,
            "page": page,
        }
        if year is not None:
            if media_type == "movie":
                params["year"] = year
            else:
                params["first_air_date_year"] = year

        data = await self._get(
            endpoint, params, context=f"search {media_type} {query!r}"
        )
        results = data.get("results") or []
        if not isinstance(results, list):
            raise TMDBAPIError(f"Unexpected TMDB search payload for {query!r}")
        return [result for result in results if isinstance(result, dict)]

    async def get_recommendations(
        self,
        media_type: MediaType,
        tmdb_id: int,
        *,
        page: int = 1,
        language: str | None = None,
    ) -> dict[str, Any]:
        return await self._get_related(
            media_type, tmdb_id, "recommendations", page=page, language=language
        )

    async def get_similar(
        self,
        media_type: MediaType,
        tmdb_id: int,
        *,
        page: int = 1,
        language: str | None = None,
    ) -> dict[str, Any]:
        return await self._get_related(
            media_type, tmdb_id, "similar", page=page, language=language
        )

    async def _get_related(
        self,
        media_type: MediaType,
        tmdb_id: int,
        relation: str,
        *,
        page: int,
        language: str | None,
    ) -> dict[str, Any]:
        params = {
            "page": page,
            "language": language or self._settings.tmdb_language,
        }
        data = await self._get(
            f"/{media_type}/{tmdb_id}/{relation}",
            params,
            context=f"{relation} for {media_type} {tmdb_id}",
        )
        results = data.get("results")
        data["results"] = [
            result for result in results or [] if isinstance(result, dict)
        ]
        data.setdefault("page", page)
        data.setdefault("total_pages", 0)
        data.setdefault("total_results", 0)
        return data

    async def _get(
        self, endpoint: str, params: dict[str, Any], *, context: str
    ) -> dict[str, Any]:
        request_params = {**params, "api_key": self._settings.tmdb_api_key}
        try:
            response = await self._client.get(endpoint, params=request_params)
        except httpx.HTTPError as exc:
            raise TMDBAPIError(f"TMDB {context} failed: {exc}") from exc
        if response.status_code >= 400:
            logger.warning("TMDB %s failed: %s", context, response.text)
            raise TMDBAPIError(
                f"TMDB {context} failed with status {response.status_code}"
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise TMDBAPIError(f"TMDB {context} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise TMDBAPIError(f"TMDB {context} returned an unexpected payload")
        return data
