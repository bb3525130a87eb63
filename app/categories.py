"""Douban listing categories and the endpoint each one is served from."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


MediaKind = Literal["movie", "tv"]
EndpointShape = Literal["collection", "recent_hot", "recommend"]

RECENT_HOT_TV_LABEL = "最近热门"
RECENT_HOT_ALL_TYPES = "全部"
TV_SERIES_FORMAT = "电视剧"
VARIETY_SHOW_FORMAT = "综艺"


@dataclass(frozen=True)
class CategoryRoute:
    """Describes which Douban endpoint serves a listing category."""

    key: str
    kind: MediaKind
    shape: EndpointShape
    collection: str | None = None
    label: str | None = None
    type: str | None = None
    format: str | None = None


def _recent_tv(key: str, type_: str) -> CategoryRoute:
    return CategoryRoute(
        key=key,
        kind="tv",
        shape="recent_hot",
        label=RECENT_HOT_TV_LABEL,
        type=type_,
    )


MOVIE_CATEGORIES: tuple[CategoryRoute, ...] = (
    CategoryRoute(key="movie_all", kind="movie", shape="recommend"),
    CategoryRoute(
        key="movie_hot",
        kind="movie",
        shape="recent_hot",
        label="热门",
        type=RECENT_HOT_ALL_TYPES,
    ),
    CategoryRoute(
        key="movie_latest",
        kind="movie",
        shape="recent_hot",
        label="最新",
        type=RECENT_HOT_ALL_TYPES,
    ),
    CategoryRoute(
        key="movie_high_score",
        kind="movie",
        shape="recent_hot",
        label="豆瓣高分",
        type=RECENT_HOT_ALL_TYPES,
    ),
    CategoryRoute(
        key="movie_cold",
        kind="movie",
        shape="recent_hot",
        label="冷门佳片",
        type=RECENT_HOT_ALL_TYPES,
    ),
    CategoryRoute(
        key="movie_showing",
        kind="movie",
        shape="collection",
        collection="movie_showing",
    ),
)

TV_CATEGORIES: tuple[CategoryRoute, ...] = (
    CategoryRoute(key="tv_all", kind="tv", shape="recommend", format=TV_SERIES_FORMAT),
    CategoryRoute(
        key="show_all", kind="tv", shape="recommend", format=VARIETY_SHOW_FORMAT
    ),
    _recent_tv("tv_hot", "tv"),
    _recent_tv("tv_domestic", "tv_domestic"),
    _recent_tv("tv_american", "tv_american"),
    _recent_tv("tv_japanese", "tv_japanese"),
    _recent_tv("tv_korean", "tv_korean"),
    _recent_tv("tv_animation", "tv_animation"),
    _recent_tv("tv_documentary", "tv_documentary"),
    _recent_tv("show_domestic", "show_domestic"),
    _recent_tv("show_foreign", "show_foreign"),
)

DEFAULT_MOVIE_CATEGORY = "movie_hot"
DEFAULT_TV_CATEGORY = "tv_hot"

_MOVIE_ROUTES = {route.key: route for route in MOVIE_CATEGORIES}
_TV_ROUTES = {route.key: route for route in TV_CATEGORIES}


def resolve_category(kind: MediaKind, category: str | None) -> CategoryRoute:
    """Return the route for ``category``, falling back to the kind's default."""

    if kind == "movie":
        routes, default = _MOVIE_ROUTES, DEFAULT_MOVIE_CATEGORY
    else:
        routes, default = _TV_ROUTES, DEFAULT_TV_CATEGORY
    key = (category or "").strip()
    return routes.get(key) or routes[default]
