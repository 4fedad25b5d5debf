"""Accumulator behind "load more" product lists.

The first fetch loads the whole requested page range in one call; every
further fetch appends one page. Pages are concatenated as returned, relying on
the upstream offset contract for non-overlapping pages.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from .errors import AccumulatorStateError
from .models import InfiniteProductsPage, PageRange, ProductRecord, QueryParams, RawProductListResponse
from .pagination import range_request

logger = logging.getLogger(__name__)

FetchProducts = Callable[[QueryParams], Awaitable[RawProductListResponse]]


class AccumulatorState(str, Enum):
    IDLE = "idle"
    INITIAL_LOAD = "initial-load"
    STEADY = "steady"
    LOADING_MORE = "loading-more"


class InfiniteAccumulator:
    def __init__(self, fetch: FetchProducts, params: QueryParams, page_range: Optional[PageRange] = None) -> None:
        self.fetch = fetch
        self.reset(params, page_range)

    def reset(self, params: QueryParams, page_range: Optional[PageRange] = None) -> None:
        """Start a new accumulation session, e.g. after the query changed."""
        self.params = params
        self.page_range = page_range or PageRange()
        self.page_size = params.limit
        self.base_offset, self.range_limit = range_request(self.page_range, self.page_size)
        self.pages: list[RawProductListResponse] = []
        self.state = AccumulatorState.IDLE

    @property
    def products(self) -> list[ProductRecord]:
        return [product for page in self.pages for product in page.products]

    @property
    def total_fetched(self) -> int:
        return sum(len(page.products) for page in self.pages)

    @property
    def total_count(self) -> int:
        return self.pages[-1].count if self.pages else 0

    @property
    def next_offset(self) -> int:
        return self.base_offset + self.total_fetched

    @property
    def has_next_page(self) -> bool:
        # Items before the range start count as seen, otherwise a range that
        # does not begin at page 1 would never run out of pages. An empty page
        # means the count was over-estimated.
        if not self.pages or not self.pages[-1].products:
            return False
        return self.next_offset < self.total_count

    async def fetch_initial(self) -> RawProductListResponse:
        if self.state is not AccumulatorState.IDLE:
            raise AccumulatorStateError(f"initial fetch requires an idle accumulator, state is {self.state.value}")
        self.state = AccumulatorState.INITIAL_LOAD
        request = self.params.with_page(limit=self.range_limit, offset=self.base_offset)
        try:
            page = await self.fetch(request)
        except Exception:
            self.state = AccumulatorState.IDLE
            raise
        self.pages.append(page)
        self.state = AccumulatorState.STEADY
        logger.debug(
            "initial load pages=%s offset=%s fetched=%s count=%s",
            self.page_range.serialize(),
            self.base_offset,
            len(page.products),
            page.count,
        )
        return page

    async def fetch_next_page(self) -> Optional[RawProductListResponse]:
        """Append one page; returns ``None`` when nothing is left to load."""
        if self.state is not AccumulatorState.STEADY:
            raise AccumulatorStateError(f"load more requires a loaded accumulator, state is {self.state.value}")
        if not self.has_next_page:
            return None
        self.state = AccumulatorState.LOADING_MORE
        request = self.params.with_page(limit=self.page_size, offset=self.next_offset)
        try:
            page = await self.fetch(request)
        finally:
            self.state = AccumulatorState.STEADY
        self.pages.append(page)
        logger.debug("loaded more offset=%s fetched=%s count=%s", request.offset, len(page.products), page.count)
        return page

    def snapshot(self) -> InfiniteProductsPage:
        return InfiniteProductsPage(
            products=self.products,
            totalCount=self.total_count,
            hasNextPage=self.has_next_page,
            pageRange=self.page_range.serialize(),
        )
