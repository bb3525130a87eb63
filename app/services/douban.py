"""Client for the Douban rexxar listing endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..categories import CategoryRoute, MediaKind
from ..config import Settings
from ..models import DoubanItem, RecommendFilters
from ..utils import page_offset
from .errors import DoubanAPIError

logger = logging.getLogger(__name__)


class DoubanClient:
    """Fetch raw listing items from Douban's mobile API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    @property
    def page_size(self) -> int:
        return self._settings.douban_page_size

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": self._settings.douban_user_agent,
            "Referer": self._settings.douban_referer,
        }

    async def fetch_collection(
        self, collection: str, *, page: int = 1, limit: int | None = None
    ) -> list[DoubanItem]:
        """Return one page of a curated subject collection."""

        limit = limit or self.page_size
        start = page_offset(page, limit)
        params = {
            "start": str(start),
            "count": str(limit),
            "updated_at": "",
            "items_only": "1",
            "for_mobile": "1",
        }
        logger.debug(
            "Fetching Douban collection %s (page %s, limit %s, start %s)",
            collection,
            page,
            limit,
            start,
        )
        context = f"collection {collection}"
        payload = await self._get(
            f"/subject_collection/{collection}/items", params, context=context
        )
        items = self._parse_items(
            payload.get("subject_collection_items"), context=context
        )
        logger.debug("Douban collection %s returned %s items", collection, len(items))
        return items

    async def fetch_recent_hot(
        self,
        kind: MediaKind,
        *,
        category: str,
        type: str,
        page: int = 1,
        limit: int | None = None,
    ) -> list[DoubanItem]:
        """Return one page of a recency-ranked list."""

        limit = limit or self.page_size
        params = {
            "start": str(page_offset(page, limit)),
            "limit": str(limit),
            "category": category,
            "type": type,
        }
        logger.debug(
            "Fetching Douban recent_hot %s/%s (type %s, page %s)",
            kind,
            category,
            type,
            page,
        )
        context = f"recent_hot {kind}/{category}"
        payload = await self._get(f"/subject/recent_hot/{kind}", params, context=context)
        items = self._parse_items(payload.get("items"), context=context)
        logger.debug("Douban recent_hot %s/%s returned %s items", kind, category, len(items))
        return items

    async def fetch_recommend(
        self,
        kind: MediaKind,
        filters: RecommendFilters,
        *,
        page: int = 1,
        limit: int | None = None,
    ) -> list[DoubanItem]:
        """Return one page of tag-filtered recommendations."""

        limit = limit or self.page_size
        params = {
            "refresh": "0",
            "start": str(page_offset(page, limit)),
            "count": str(limit),
            "uncollect": "false",
            "score_range": "0,10",
            **filters.to_params(),
        }
        logger.debug(
            "Fetching Douban recommend %s (page %s, tags %s)",
            kind,
            page,
            params["tags"],
        )
        context = f"recommend {kind}"
        payload = await self._get(f"/{kind}/recommend", params, context=context)
        return self._parse_items(payload.get("items"), context=context)

    async def fetch_listing(
        self,
        route: CategoryRoute,
        *,
        page: int = 1,
        genre: str | None = None,
        region: str | None = None,
        year: str | None = None,
        sort: str | None = None,
    ) -> list[DoubanItem]:
        """Dispatch to the endpoint that serves ``route``."""

        if route.shape == "collection":
            return await self.fetch_collection(route.collection or route.key, page=page)
        if route.shape == "recent_hot":
            return await self.fetch_recent_hot(
                route.kind,
                category=route.label or "",
                type=route.type or "",
                page=page,
            )
        filters = RecommendFilters(
            category=genre,
            format=route.format,
            region=region,
            year=year,
            sort=sort,
        )
        return await self.fetch_recommend(route.kind, filters, page=page)

    async def _get(
        self, path: str, params: dict[str, str], *, context: str
    ) -> dict[str, Any]:
        try:
            response = await self._client.get(
                path, params=params, headers=self._headers()
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise DoubanAPIError(f"Failed to fetch {context}: {exc}") from exc
        if not isinstance(payload, dict):
            raise DoubanAPIError(f"Failed to fetch {context}: unexpected payload")
        return payload

    @staticmethod
    def _parse_items(raw: Any, *, context: str) -> list[DoubanItem]:
        if not raw:
            return []
        if not isinstance(raw, list):
            raise DoubanAPIError(f"Failed to fetch {context}: items is not a list")
        items: list[DoubanItem] = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            try:
                items.append(DoubanItem.model_validate(entry))
            except ValidationError as exc:
                logger.debug("Skipping malformed Douban item in %s: %s", context, exc)
        return items
