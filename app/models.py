"""Pydantic models and records describing Douban and TMDB payloads."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import is_selected, parse_year

MediaType = Literal["movie", "tv"]

PLACEHOLDER_TOTAL_RESULTS = 1000
PLACEHOLDER_TOTAL_PAGES = 50

GENRE_LABEL = "类型"
FORMAT_LABEL = "形式"
REGION_LABEL = "地区"
DEFAULT_SORT_SENTINEL = "T"


class DoubanRatingValue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: float | None = None


class DoubanItem(BaseModel):
    """A single entry from any of the Douban listing endpoints."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str | None = None
    cover: dict[str, Any] | None = None
    pic: dict[str, Any] | None = None
    rating: DoubanRatingValue | None = None
    year: str | None = None
    card_subtitle: str | None = None
    type: str | None = None

    @field_validator("id", "year", mode="before")
    @classmethod
    def _coerce_to_text(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("cover", "pic", "rating", mode="before")
    @classmethod
    def _drop_non_mapping(cls, value: object) -> object:
        # Placeholder entries sometimes carry empty strings in object slots.
        if isinstance(value, (dict, BaseModel)):
            return value
        return None

    def to_query(self, language: str) -> NormalizedQuery | None:
        """Return the search query for this item, or ``None`` for placeholders."""

        title = (self.title or "").strip()
        if not title:
            return None
        return NormalizedQuery(
            title=title,
            year=parse_year(self.year),
            language=language,
            source_id=self.id,
            rating=self.rating.value if self.rating else None,
        )


@dataclass(slots=True)
class NormalizedQuery:
    """Title/year search derived from a Douban item."""

    title: str
    year: int | None
    language: str
    source_id: str
    rating: float | None = None
    page: int = 1


def normalize_items(
    items: Iterable[DoubanItem], *, language: str
) -> list[NormalizedQuery]:
    """Convert Douban items into search queries, dropping untitled entries."""

    queries: list[NormalizedQuery] = []
    for item in items:
        query = item.to_query(language)
        if query is not None:
            queries.append(query)
    return queries


@dataclass(frozen=True)
class RecommendFilters:
    """Filter selection for the tag-filtered recommendation endpoint."""

    category: str | None = None
    format: str | None = None
    region: str | None = None
    year: str | None = None
    sort: str | None = None

    def tags(self) -> list[str]:
        """Return the ordered tag list.

        Any category string, including ``"all"``, claims the genre slot, so the
        format is only tagged when no category was passed.
        """

        tags: list[str] = []
        if is_selected(self.category):
            tags.append(self.category.strip())  # type: ignore[union-attr]
        elif not (self.category or "").strip() and is_selected(self.format):
            tags.append(self.format.strip())  # type: ignore[union-attr]
        if is_selected(self.region):
            tags.append(self.region.strip())  # type: ignore[union-attr]
        if is_selected(self.year):
            tags.append(self.year.strip())  # type: ignore[union-attr]
        return tags

    def selected_categories(self) -> dict[str, str]:
        selected: dict[str, str] = {}
        for label, value in (
            (GENRE_LABEL, self.category),
            (FORMAT_LABEL, self.format),
            (REGION_LABEL, self.region),
        ):
            if is_selected(value):
                selected[label] = value.strip()  # type: ignore[union-attr]
        return selected

    def sort_param(self) -> str:
        if self.sort is None or self.sort == DEFAULT_SORT_SENTINEL:
            return ""
        return self.sort

    def to_params(self) -> dict[str, str]:
        """Serialize the filters into Douban query parameters."""

        return {
            "selected_categories": json.dumps(
                self.selected_categories(), ensure_ascii=False, separators=(",", ":")
            ),
            "tags": ",".join(self.tags()),
            "sort": self.sort_param(),
        }


@dataclass(slots=True)
class DoubanRating:
    """Rating record returned by the Douban rating index."""

    rating: float
    douban_id: str | None = None

    def as_payload(self) -> dict[str, Any]:
        return {"douban_id": self.douban_id, "rating": self.rating}


class PagedEnvelope(BaseModel):
    """TMDB-shaped search page wrapping reconciled results."""

    page: int = Field(ge=1)
    total_results: int = PLACEHOLDER_TOTAL_RESULTS
    total_pages: int = PLACEHOLDER_TOTAL_PAGES
    results: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_results(
        cls, page: int, results: list[dict[str, Any]]
    ) -> "PagedEnvelope":
        """Wrap ``results`` with placeholder totals.

        Douban exposes no reliable totals, so callers should only use
        :attr:`is_empty` to decide whether to fetch another page.
        """

        return cls(page=page, results=list(results))

    @property
    def is_empty(self) -> bool:
        return not self.results
