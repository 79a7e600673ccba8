"""Page/per-page normalization shared by the preview and the HSN listing."""

from __future__ import annotations

from typing import Any

PER_PAGE_OPTIONS: tuple[int, ...] = (10, 20, 50, 100, 200, 500, 750, 1000)
DEFAULT_PER_PAGE = 20
MIN_PER_PAGE = 10


def clamp_page(value: Any) -> int:
    """1-based page number; anything unparsable or below 1 becomes 1."""
    try:
        return max(1, int(value))
    except (TypeError, ValueError):
        return 1


def clamp_per_page(value: Any) -> int:
    """Items per page: at least 10, 20 when missing or unparsable."""
    if value is None:
        return DEFAULT_PER_PAGE
    try:
        return max(MIN_PER_PAGE, int(value))
    except (TypeError, ValueError):
        return DEFAULT_PER_PAGE


def page_count(total: int, per_page: int) -> int:
    """Number of pages, at least 1."""
    return max(1, -(-total // per_page))


__all__ = ["PER_PAGE_OPTIONS", "DEFAULT_PER_PAGE", "clamp_page", "clamp_per_page", "page_count"]
