"""Resolve Douban items to TMDB records by title and year."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from ..models import MediaType, NormalizedQuery
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

DOUBAN_ID_FIELD = "douban_id"
DOUBAN_RATING_FIELD = "douban_rating"


def merge_match(result: dict[str, Any], query: NormalizedQuery) -> dict[str, Any]:
    """Return a copy of ``result`` carrying the Douban id and rating."""

    merged = dict(result)
    merged[DOUBAN_ID_FIELD] = query.source_id
    if query.rating is not None:
        merged[DOUBAN_RATING_FIELD] = query.rating
    return merged


class CatalogMatcher:
    """Match normalized Douban queries against TMDB search results.

    The first search hit is accepted as-is. When a year-constrained search
    comes back empty, the title is searched once more without the year.
    """

    def __init__(self, tmdb: TMDBClient, *, concurrency: int = 4):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._tmdb = tmdb
        self._concurrency = concurrency

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def match(
        self, query: NormalizedQuery, media_type: MediaType
    ) -> dict[str, Any] | None:
        results = await self._tmdb.search(
            media_type,
            query.title,
            language=query.language,
            page=query.page,
            year=query.year,
        )
        if results:
            return results[0]
        if query.year is None:
            logger.debug("No TMDB %s match for %s", media_type, query.title)
            return None

        logger.debug(
            "No TMDB %s match for %s (%s); retrying without year",
            media_type,
            query.title,
            query.year,
        )
        results = await self._tmdb.search(
            media_type,
            query.title,
            language=query.language,
            page=query.page,
        )
        if results:
            return results[0]
        logger.debug("No TMDB %s match for %s", media_type, query.title)
        return None

    async def reconcile(
        self, queries: Sequence[NormalizedQuery], media_type: MediaType
    ) -> list[dict[str, Any]]:
        """Match every query and return merged results in input order."""

        if not queries:
            return []

        semaphore = asyncio.Semaphore(self._concurrency)

        async def _bounded(query: NormalizedQuery) -> dict[str, Any] | None:
            async with semaphore:
                return await self.match(query, media_type)

        matches = await asyncio.gather(*(_bounded(query) for query in queries))

        reconciled: list[dict[str, Any]] = []
        for query, match in zip(queries, matches):
            if match is None:
                continue
            reconciled.append(merge_match(match, query))
        logger.debug(
            "Matched %s of %s Douban %s items", len(reconciled), len(queries), media_type
        )
        return reconciled
