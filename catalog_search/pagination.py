"""Offset math, page slicing and total-count estimation."""
from __future__ import annotations

from typing import Optional, Sequence, TypeVar

from .models import PageRange

T = TypeVar("T")


def slice_page(ids: Sequence[T], limit: int, offset: int) -> list[T]:
    return list(ids[offset : offset + limit])


def estimate_search_count(
    page_offset: int,
    page_limit: int,
    hit_count: int,
    estimated_total: Optional[int],
) -> int:
    """Total for a search page, never below what has already been observed.

    A full page means more results may follow, so the index's estimate is used
    unless it is smaller than the observed count. A short page is the real end
    of the result set. The estimate can still over-report near the end of a
    result set when the last page happens to be exactly full.
    """
    observed = page_offset + hit_count
    if hit_count >= page_limit:
        return max(estimated_total or 0, observed)
    return observed


def range_request(page_range: PageRange, page_size: int) -> tuple[int, int]:
    """``(offset, limit)`` that loads every page of ``page_range`` in one call."""
    base_offset = (page_range.start - 1) * page_size
    pages = page_range.end - page_range.start + 1
    return base_offset, pages * page_size
