"""Tests for the Douban listing client."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from app.categories import resolve_category
from app.config import Settings
from app.models import RecommendFilters
from app.services.douban import DoubanClient
from app.services.errors import DoubanAPIError

BASE_URL = "https://douban.example.com/rexxar/api/v2"


def _item(item_id: str, title: str = "", **extra: Any) -> dict[str, Any]:
    return {"id": item_id, "title": title, "type": "movie", **extra}


def _client(handler) -> tuple[DoubanClient, httpx.AsyncClient]:
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url=BASE_URL
    )
    return DoubanClient(Settings(_env_file=None), http_client), http_client


@pytest.mark.anyio("asyncio")
async def test_fetch_collection_builds_paged_request() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={"subject_collection_items": [_item("1", "流浪地球")]},
        )

    client, http_client = _client(handler)
    async with http_client:
        items = await client.fetch_collection("movie_showing", page=3)

    assert [item.title for item in items] == ["流浪地球"]
    request = requests[0]
    assert request.url.path == "/rexxar/api/v2/subject_collection/movie_showing/items"
    assert dict(request.url.params) == {
        "start": "40",
        "count": "20",
        "updated_at": "",
        "items_only": "1",
        "for_mobile": "1",
    }
    assert request.headers["Referer"] == "https://movie.douban.com/"
    assert "Mozilla" in request.headers["User-Agent"]


@pytest.mark.anyio("asyncio")
async def test_fetch_recent_hot_uses_limit_parameter() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"items": [_item("2", "繁花")]})

    client, http_client = _client(handler)
    async with http_client:
        items = await client.fetch_recent_hot(
            "tv", category="最近热门", type="tv_domestic", page=2, limit=10
        )

    assert len(items) == 1
    request = requests[0]
    assert request.url.path == "/rexxar/api/v2/subject/recent_hot/tv"
    assert dict(request.url.params) == {
        "start": "10",
        "limit": "10",
        "category": "最近热门",
        "type": "tv_domestic",
    }


@pytest.mark.anyio("asyncio")
async def test_fetch_recommend_serialises_filters() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"items": [_item("3", "Friends"), _item("ad")]})

    client, http_client = _client(handler)
    filters = RecommendFilters(
        category="Drama", format="Variety", region="USA", year="1999", sort="T"
    )
    async with http_client:
        items = await client.fetch_recommend("tv", filters, page=1)

    assert len(items) == 2
    params = requests[0].url.params
    assert requests[0].url.path == "/rexxar/api/v2/tv/recommend"
    assert params["refresh"] == "0"
    assert params["start"] == "0"
    assert params["count"] == "20"
    assert params["uncollect"] == "false"
    assert params["score_range"] == "0,10"
    assert params["tags"] == "Drama,USA,1999"
    assert params["sort"] == ""
    assert json.loads(params["selected_categories"]) == {
        "类型": "Drama",
        "形式": "Variety",
        "地区": "USA",
    }


@pytest.mark.anyio("asyncio")
async def test_missing_item_field_is_an_empty_listing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"count": 0})

    client, http_client = _client(handler)
    async with http_client:
        items = await client.fetch_recent_hot("movie", category="热门", type="全部")

    assert items == []


@pytest.mark.anyio("asyncio")
async def test_transport_failure_is_wrapped_with_context() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503, text="busy")

    client, http_client = _client(handler)
    async with http_client:
        with pytest.raises(DoubanAPIError, match="recent_hot movie/豆瓣高分") as excinfo:
            await client.fetch_recent_hot("movie", category="豆瓣高分", type="全部")

    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)
    assert calls == 1


@pytest.mark.anyio("asyncio")
async def test_invalid_json_is_wrapped_with_context() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>blocked</html>")

    client, http_client = _client(handler)
    async with http_client:
        with pytest.raises(DoubanAPIError, match="collection movie_showing"):
            await client.fetch_collection("movie_showing")


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize(
    ("kind", "category", "expected_path", "expected_params"),
    [
        (
            "movie",
            "movie_showing",
            "/rexxar/api/v2/subject_collection/movie_showing/items",
            {"count": "20"},
        ),
        (
            "movie",
            "movie_latest",
            "/rexxar/api/v2/subject/recent_hot/movie",
            {"category": "最新", "type": "全部"},
        ),
        (
            "movie",
            "unknown",
            "/rexxar/api/v2/subject/recent_hot/movie",
            {"category": "热门", "type": "全部"},
        ),
        (
            "tv",
            "tv_hot",
            "/rexxar/api/v2/subject/recent_hot/tv",
            {"category": "最近热门", "type": "tv"},
        ),
        (
            "tv",
            "show_foreign",
            "/rexxar/api/v2/subject/recent_hot/tv",
            {"category": "最近热门", "type": "show_foreign"},
        ),
        (
            "tv",
            "show_all",
            "/rexxar/api/v2/tv/recommend",
            {"tags": "综艺"},
        ),
    ],
)
async def test_fetch_listing_routes_categories(
    kind: str, category: str, expected_path: str, expected_params: dict[str, str]
) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={})

    client, http_client = _client(handler)
    async with http_client:
        await client.fetch_listing(resolve_category(kind, category), page=1)  # type: ignore[arg-type]

    assert len(requests) == 1
    assert requests[0].url.path == expected_path
    for key, value in expected_params.items():
        assert requests[0].url.params[key] == value


@pytest.mark.anyio("asyncio")
async def test_tv_all_prefers_genre_over_series_format() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"items": []})

    client, http_client = _client(handler)
    async with http_client:
        await client.fetch_listing(
            resolve_category("tv", "tv_all"),
            genre="悬疑",
            region="韩国",
            year="2023",
            sort="U",
        )

    params = requests[0].url.params
    assert params["tags"] == "悬疑,韩国,2023"
    assert params["sort"] == "U"
    assert json.loads(params["selected_categories"]) == {
        "类型": "悬疑",
        "形式": "电视剧",
        "地区": "韩国",
    }


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize(("category", "format_"), [("tv_all", "电视剧"), ("show_all", "综艺")])
async def test_default_all_genre_sends_format_only_as_selected_category(
    category: str, format_: str
) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"items": []})

    client, http_client = _client(handler)
    async with http_client:
        await client.fetch_listing(
            resolve_category("tv", category),
            genre="all",
            region="all",
            year="all",
            sort="T",
        )

    params = requests[0].url.params
    assert params["tags"] == ""
    assert params["sort"] == ""
    assert json.loads(params["selected_categories"]) == {"形式": format_}
