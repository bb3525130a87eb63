"""Exceptions raised by upstream API clients."""

from __future__ import annotations


class UpstreamError(RuntimeError):
    """Base class for failures talking to an upstream catalog."""


class DoubanAPIError(UpstreamError):
    """A Douban listing request failed or returned an unusable payload."""


class TMDBAPIError(UpstreamError):
    """A TMDB request failed or returned an unusable payload."""
