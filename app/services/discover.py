"""High level orchestration for Douban discovery listings."""

from __future__ import annotations

import logging
from typing import Any

from ..categories import resolve_category
from ..config import Settings
from ..models import DoubanRating, MediaType, PagedEnvelope, normalize_items
from .douban import DoubanClient
from .douban_rating import DoubanRatingClient, attach_ratings
from .matcher import CatalogMatcher
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)


class DiscoverService:
    """Builds reconciled Douban listings and rating-enriched TMDB listings."""

    def __init__(
        self,
        settings: Settings,
        douban: DoubanClient,
        tmdb: TMDBClient,
        ratings: DoubanRatingClient,
    ) -> None:
        self._settings = settings
        self._douban = douban
        self._tmdb = tmdb
        self._ratings = ratings
        self._matcher = CatalogMatcher(tmdb, concurrency=settings.match_concurrency)

    async def discover_movies(
        self,
        *,
        page: int = 1,
        category: str | None = None,
        genre: str | None = None,
        region: str | None = None,
        year: str | None = None,
        sort: str | None = None,
    ) -> PagedEnvelope:
        return await self._discover(
            "movie",
            page=page,
            category=category,
            genre=genre,
            region=region,
            year=year,
            sort=sort,
        )

    async def discover_tv(
        self,
        *,
        page: int = 1,
        category: str | None = None,
        genre: str | None = None,
        region: str | None = None,
        year: str | None = None,
        sort: str | None = None,
    ) -> PagedEnvelope:
        return await self._discover(
            "tv",
            page=page,
            category=category,
            genre=genre,
            region=region,
            year=year,
            sort=sort,
        )

    async def _discover(
        self,
        media_type: MediaType,
        *,
        page: int,
        category: str | None,
        genre: str | None,
        region: str | None,
        year: str | None,
        sort: str | None,
    ) -> PagedEnvelope:
        route = resolve_category(media_type, category)
        logger.debug(
            "Discovering Douban %s category %s (resolved %s, page %s)",
            media_type,
            category,
            route.key,
            page,
        )
        items = await self._douban.fetch_listing(
            route, page=page, genre=genre, region=region, year=year, sort=sort
        )
        queries = normalize_items(items, language=self._settings.tmdb_language)
        results = await self._matcher.reconcile(queries, media_type)
        return PagedEnvelope.from_results(page, results)

    async def related_titles(
        self,
        media_type: MediaType,
        tmdb_id: int,
        *,
        relation: str,
        page: int = 1,
        language: str | None = None,
    ) -> dict[str, Any]:
        """Return TMDB recommendations or similar titles with Douban ratings."""

        if relation == "recommendations":
            data = await self._tmdb.get_recommendations(
                media_type, tmdb_id, page=page, language=language
            )
        elif relation == "similar":
            data = await self._tmdb.get_similar(
                media_type, tmdb_id, page=page, language=language
            )
        else:
            raise ValueError(f"Unsupported relation: {relation}")

        results = data["results"]
        ids = [result.get("id") for result in results]
        lookup_ids = [value for value in ids if isinstance(value, int)]
        found = iter(await self._ratings.get_ratings(lookup_ids, media_type))
        aligned = [next(found) if isinstance(value, int) else None for value in ids]
        data["results"] = attach_ratings(results, aligned)
        return data

    async def rating_for(
        self, media_type: MediaType, tmdb_id: int
    ) -> DoubanRating | None:
        return await self._ratings.get_rating(tmdb_id, media_type)
