"""Entry point for the FastAPI-powered Douban discovery service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .models import MediaType, PagedEnvelope
from .services.discover import DiscoverService
from .services.douban import DoubanClient
from .services.douban_rating import DoubanRatingClient
from .services.errors import UpstreamError
from .services.tmdb import TMDBClient

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    douban_http = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.douban_api_url),
            timeout=httpx.Timeout(15.0, connect=5.0),
        )
    )
    tmdb_http = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(20.0, connect=10.0),
        )
    )
    rating_http = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            timeout=httpx.Timeout(settings.rating_timeout_seconds),
        )
    )

    discover_service = DiscoverService(
        settings,
        DoubanClient(settings, douban_http),
        TMDBClient(settings, tmdb_http),
        DoubanRatingClient(settings, rating_http),
    )
    fastapi_app.state.discover_service = discover_service

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Douban trending listings reconciled against TMDB",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_discover_service(app: FastAPI) -> DiscoverService:
    service = getattr(app.state, "discover_service", None)
    if not isinstance(service, DiscoverService):
        raise RuntimeError("Discover service not initialised")
    return service


def register_routes(fastapi_app: FastAPI) -> None:
    async def _discover_endpoint(
        media_type: MediaType,
        *,
        page: int,
        category: str | None,
        genre: str,
        region: str,
        year: str,
        sort: str,
        failure_message: str,
    ) -> dict[str, Any]:
        service = get_discover_service(fastapi_app)
        discover = (
            service.discover_movies if media_type == "movie" else service.discover_tv
        )
        try:
            envelope: PagedEnvelope = await discover(
                page=page,
                category=category,
                genre=genre,
                region=region,
                year=year,
                sort=sort,
            )
        except UpstreamError as exc:
            logger.debug(
                "Something went wrong retrieving Douban %s listing %s: %s",
                media_type,
                category,
                exc,
            )
            raise HTTPException(status_code=500, detail=failure_message) from exc
        return envelope.model_dump()

    async def _related_endpoint(
        media_type: MediaType,
        tmdb_id: int,
        relation: str,
        *,
        page: int,
        language: str | None,
        failure_message: str,
    ) -> dict[str, Any]:
        service = get_discover_service(fastapi_app)
        try:
            return await service.related_titles(
                media_type, tmdb_id, relation=relation, page=page, language=language
            )
        except UpstreamError as exc:
            logger.debug(
                "Something went wrong retrieving %s for %s %s: %s",
                relation,
                media_type,
                tmdb_id,
                exc,
            )
            raise HTTPException(status_code=500, detail=failure_message) from exc

    async def _rating_endpoint(media_type: MediaType, tmdb_id: int) -> dict[str, Any]:
        service = get_discover_service(fastapi_app)
        rating = await service.rating_for(media_type, tmdb_id)
        if rating is None:
            raise HTTPException(status_code=404, detail="Douban rating not found.")
        return rating.as_payload()

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/v1/discover/douban/movies")
    async def discover_douban_movies(
        page: int = Query(default=1, ge=1),
        category: str = "movie_hot",
        genre: str = "all",
        region: str = "all",
        year: str = "all",
        sort: str = "T",
    ) -> dict[str, Any]:
        return await _discover_endpoint(
            "movie",
            page=page,
            category=category,
            genre=genre,
            region=region,
            year=year,
            sort=sort,
            failure_message="Unable to retrieve Douban movies.",
        )

    @fastapi_app.get("/api/v1/discover/douban/tv")
    async def discover_douban_tv(
        page: int = Query(default=1, ge=1),
        category: str = "tv_hot",
        genre: str = "all",
        region: str = "all",
        year: str = "all",
        sort: str = "T",
    ) -> dict[str, Any]:
        return await _discover_endpoint(
            "tv",
            page=page,
            category=category,
            genre=genre,
            region=region,
            year=year,
            sort=sort,
            failure_message="Unable to retrieve Douban TV.",
        )

    @fastapi_app.get("/api/v1/movie/{tmdb_id}/recommendations")
    async def movie_recommendations(
        tmdb_id: int, page: int = Query(default=1, ge=1), language: str | None = None
    ) -> dict[str, Any]:
        return await _related_endpoint(
            "movie",
            tmdb_id,
            "recommendations",
            page=page,
            language=language,
            failure_message="Unable to retrieve movie recommendations.",
        )

    @fastapi_app.get("/api/v1/movie/{tmdb_id}/similar")
    async def movie_similar(
        tmdb_id: int, page: int = Query(default=1, ge=1), language: str | None = None
    ) -> dict[str, Any]:
        return await _related_endpoint(
            "movie",
            tmdb_id,
            "similar",
            page=page,
            language=language,
            failure_message="Unable to retrieve similar movies.",
        )

    @fastapi_app.get("/api/v1/tv/{tmdb_id}/recommendations")
    async def tv_recommendations(
        tmdb_id: int, page: int = Query(default=1, ge=1), language: str | None = None
    ) -> dict[str, Any]:
        return await _related_endpoint(
            "tv",
            tmdb_id,
            "recommendations",
            page=page,
            language=language,
            failure_message="Unable to retrieve series recommendations.",
        )

    @fastapi_app.get("/api/v1/tv/{tmdb_id}/similar")
    async def tv_similar(
        tmdb_id: int, page: int = Query(default=1, ge=1), language: str | None = None
    ) -> dict[str, Any]:
        return await _related_endpoint(
            "tv",
            tmdb_id,
            "similar",
            page=page,
            language=language,
            failure_message="Unable to retrieve similar series.",
        )

    @fastapi_app.get("/api/v1/movie/{tmdb_id}/ratings/douban")
    async def movie_douban_rating(tmdb_id: int) -> dict[str, Any]:
        return await _rating_endpoint("movie", tmdb_id)

    @fastapi_app.get("/api/v1/tv/{tmdb_id}/ratings/douban")
    async def tv_douban_rating(tmdb_id: int) -> dict[str, Any]:
        return await _rating_endpoint("tv", tmdb_id)


app = create_app()
