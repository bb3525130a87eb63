"""Lookup of Douban ratings by TMDB identifier."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import httpx

from ..config import Settings
from ..models import DoubanRating, MediaType
from .matcher import DOUBAN_ID_FIELD, DOUBAN_RATING_FIELD

logger = logging.getLogger(__name__)


class DoubanRatingClient:
    """Query the community Douban rating index keyed by TMDB ids.

    A missing rating is an ordinary outcome: every failure mode resolves to
    ``None`` instead of an exception.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._url = str(settings.douban_rating_url)
        self._timeout = settings.rating_timeout_seconds
        self._client = http_client

    async def get_rating(
        self, tmdb_id: int, media_type: MediaType
    ) -> DoubanRating | None:
        params = {"tmdb_id": tmdb_id, "tmdb_media_type": media_type}
        try:
            response = await self._client.get(
                self._url, params=params, timeout=self._timeout
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug(
                "Douban rating lookup failed for %s %s: %s", media_type, tmdb_id, exc
            )
            return None

        if not isinstance(payload, list) or not payload:
            return None
        return self._parse_record(payload[0])

    async def get_ratings(
        self, tmdb_ids: Sequence[int], media_type: MediaType
    ) -> list[DoubanRating | None]:
        """Look up every id concurrently; results align with ``tmdb_ids``."""

        if not tmdb_ids:
            return []
        results = await asyncio.gather(
            *(self.get_rating(tmdb_id, media_type) for tmdb_id in tmdb_ids),
            return_exceptions=True,
        )
        ratings: list[DoubanRating | None] = []
        for tmdb_id, result in zip(tmdb_ids, results):
            if isinstance(result, BaseException):
                logger.debug(
                    "Douban rating lookup raised for %s %s: %s",
                    media_type,
                    tmdb_id,
                    result,
                )
                ratings.append(None)
                continue
            ratings.append(result)
        return ratings

    @staticmethod
    def _parse_record(record: Any) -> DoubanRating | None:
        if not isinstance(record, dict):
            return None
        rating = record.get("rating")
        if isinstance(rating, bool) or rating is None:
            return None
        try:
            value = float(rating)
        except (TypeError, ValueError):
            return None
        douban_id = record.get("douban_id")
        return DoubanRating(
            rating=value,
            douban_id=str(douban_id) if douban_id is not None else None,
        )


def attach_ratings(
    results: Sequence[dict[str, Any]],
    ratings: Sequence[DoubanRating | None],
) -> list[dict[str, Any]]:
    """Copy each present rating onto the result at the same position."""

    enriched: list[dict[str, Any]] = []
    for result, rating in zip(results, ratings):
        if rating is None:
            enriched.append(result)
            continue
        merged = dict(result)
        merged[DOUBAN_RATING_FIELD] = rating.rating
        if rating.douban_id is not None:
            merged[DOUBAN_ID_FIELD] = rating.douban_id
        enriched.append(merged)
    return enriched
