"""Utility helpers for the Douban discovery service."""

from __future__ import annotations

import re
from typing import Any


LEADING_INT_RE = re.compile(r"^\s*(\d+)")

SENTINEL_ALL = "all"


def page_offset(page: int, limit: int) -> int:
    """Return the zero-based item offset for a one-based page."""

    if page < 1:
        raise ValueError("page must be >= 1")
    if limit < 1:
        raise ValueError("limit must be > 0")
    return (page - 1) * limit


def parse_year(value: Any) -> int | None:
    """Parse the leading integer of a year field such as ``"1999"``."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        year = value
    elif isinstance(value, str):
        match = LEADING_INT_RE.match(value)
        if not match:
            return None
        year = int(match.group(1))
    else:
        return None
    return year if year > 0 else None


def is_selected(value: str | None) -> bool:
    """Return ``True`` for a filter value that is set and not ``"all"``."""

    if value is None:
        return False
    cleaned = value.strip()
    return bool(cleaned) and cleaned != SENTINEL_ALL
