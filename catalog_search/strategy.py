"""Fetch strategy selection.

Free text and size filters are the two dimensions the search index and the
catalog do not share, so they decide which collectors run. Categories do not
change the strategy; merge strategies narrow their ids by category membership
and the default listing passes them to the catalog.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from .models import Filters, QueryParams


class FetchStrategy(str, Enum):
    MEILI_SIZE_INTERSECTION = "MEILI_SIZE_INTERSECTION"
    MEILI_ONLY = "MEILI_ONLY"
    SIZE_ONLY_FALLBACK = "SIZE_ONLY_FALLBACK"
    DEFAULT_MEDUSA = "DEFAULT_MEDUSA"

    @property
    def merges_ids(self) -> bool:
        return self is not FetchStrategy.DEFAULT_MEDUSA


def select_strategy(query: Optional[str], filters: Filters) -> FetchStrategy:
    has_query = bool(query and query.strip())
    if has_query and filters.has_sizes:
        return FetchStrategy.MEILI_SIZE_INTERSECTION
    if has_query:
        return FetchStrategy.MEILI_ONLY
    if filters.has_sizes:
        return FetchStrategy.SIZE_ONLY_FALLBACK
    return FetchStrategy.DEFAULT_MEDUSA


def strategy_for(params: QueryParams) -> FetchStrategy:
    return select_strategy(params.query, params.filters)
