"""Collectors that turn one upstream source's pages into a flat id list."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Awaitable, Callable, Dict, Optional, Sequence

from .cache import IdsCache, NullCache
from .catalog import CatalogClient
from .id_utils import dedupe_ids, dedupe_ids_from_hits
from .models import ProductId
from .search_sources import SearchSource

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 250
DEFAULT_TTL_SECONDS = 300


@dataclass
class IdsPage:
    ids: list[ProductId]
    item_count: int
    total_count: Optional[int] = None


FetchIdsPage = Callable[[int, int], Awaitable[IdsPage]]


async def collect_ids_from_paginated_source(fetch_page: FetchIdsPage, page_size: int = DEFAULT_PAGE_SIZE) -> list[ProductId]:
    """Page through a source until it is exhausted.

    Stops on an empty page, a short page, or once the offset reaches the
    source's reported total (when it reports one). Ids are concatenated as
    received.
    """
    ids: list[ProductId] = []
    offset = 0
    while True:
        page = await fetch_page(offset, page_size)
        if page.item_count == 0:
            break
        ids.extend(page.ids)
        offset += page.item_count
        if page.item_count < page_size:
            break
        if page.total_count is not None and offset >= page.total_count:
            break
    return ids


def search_cache_key(query: str) -> str:
    return "search::" + query.strip().lower()


def variant_cache_key(size: str, q: Optional[str] = None) -> str:
    return f"size::{size}::{(q or '').strip()}"


def category_cache_key(categories: Sequence[str], country_code: str, region_id: Optional[str] = None) -> str:
    return f"category::{','.join(sorted(categories))}::{country_code}::{region_id or ''}"


class CachedCollector:
    """Cache lookup plus one shared in-flight collection per key.

    Concurrent callers asking for the same key while it is being collected
    await the same task instead of paging the upstream again. The entry is
    dropped once the task finishes, successfully or not.
    """

    def __init__(self, cache: Optional[IdsCache], ttl_seconds: int) -> None:
        self.cache = cache if cache is not None else NullCache()
        self.ttl_seconds = ttl_seconds
        self._inflight: Dict[str, asyncio.Task] = {}

    async def _get_or_collect(self, key: str, collect: Callable[[], Awaitable[list[ProductId]]]) -> list[ProductId]:
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("ids cache hit key=%r ids=%s", key, len(cached))
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._collect_and_store(key, collect))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        else:
            logger.debug("joining in-flight collection key=%r", key)
        # One cancelled caller must not cancel the collection for the others.
        return list(await asyncio.shield(task))

    async def _collect_and_store(self, key: str, collect: Callable[[], Awaitable[list[ProductId]]]) -> list[ProductId]:
        ids = await collect()
        self.cache.set(key, ids, self.ttl_seconds)
        return ids


class SearchCollector(CachedCollector):
    """Collects every product id a free-text query matches, in relevance order."""

    def __init__(
        self,
        source: SearchSource,
        cache: Optional[IdsCache] = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        super().__init__(cache, ttl_seconds)
        self.source = source
        self.page_size = page_size

    async def collect(self, query: str) -> list[ProductId]:
        normalized = query.strip()
        if not normalized:
            return []
        return await self._get_or_collect(search_cache_key(normalized), lambda: self._collect(normalized))

    async def _collect(self, query: str) -> list[ProductId]:
        start = perf_counter()

        async def fetch_page(offset: int, limit: int) -> IdsPage:
            page = await self.source.search(query, limit, offset)
            return IdsPage(
                ids=dedupe_ids_from_hits(page.hits),
                item_count=len(page.hits),
                total_count=page.estimatedTotalHits,
            )

        # A product can surface on several pages; the first position wins.
        ids = dedupe_ids(await collect_ids_from_paginated_source(fetch_page, self.page_size))
        logger.info(
            "collected search ids q=%r ids=%s took=%.2fms",
            query,
            len(ids),
            (perf_counter() - start) * 1000,
        )
        return ids


class VariantCollector(CachedCollector):
    """Collects ids of products owning a variant with one of the given sizes."""

    def __init__(
        self,
        catalog: CatalogClient,
        cache: Optional[IdsCache] = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        super().__init__(cache, ttl_seconds)
        self.catalog = catalog
        self.page_size = page_size

    async def collect_for_size(self, size: str, q: Optional[str] = None) -> list[ProductId]:
        return await self._get_or_collect(variant_cache_key(size, q), lambda: self._collect_for_size(size, q))

    async def _collect_for_size(self, size: str, q: Optional[str]) -> list[ProductId]:
        async def fetch_page(offset: int, limit: int) -> IdsPage:
            page = await self.catalog.list_variants(size=size, q=q, limit=limit, offset=offset)
            ids = [variant.product_id.strip() for variant in page.variants if variant.product_id and variant.product_id.strip()]
            return IdsPage(ids=ids, item_count=len(page.variants), total_count=page.count)

        ids = await collect_ids_from_paginated_source(fetch_page, self.page_size)
        logger.debug("collected variant ids size=%r q=%r ids=%s", size, q, len(ids))
        return ids

    async def collect(self, sizes: Sequence[str], q: Optional[str] = None) -> list[ProductId]:
        """Merge ids for all sizes in request order; a product is listed once."""
        collected: list[ProductId] = []
        for size in sizes:
            collected.extend(await self.collect_for_size(size, q))
        return dedupe_ids(collected)


class CategoryCollector(CachedCollector):
    """Collects ids of products in any of the given categories.

    Used as a membership filter when categories are combined with the id
    merge, so counts and page slices already reflect the category constraint.
    """

    def __init__(
        self,
        catalog: CatalogClient,
        cache: Optional[IdsCache] = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        super().__init__(cache, ttl_seconds)
        self.catalog = catalog
        self.page_size = page_size

    async def collect(self, categories: Sequence[str], *, country_code: str, region_id: Optional[str] = None) -> list[ProductId]:
        if not categories:
            return []
        key = category_cache_key(categories, country_code, region_id)
        return await self._get_or_collect(key, lambda: self._collect(categories, country_code, region_id))

    async def _collect(self, categories: Sequence[str], country_code: str, region_id: Optional[str]) -> list[ProductId]:
        async def fetch_page(offset: int, limit: int) -> IdsPage:
            page = await self.catalog.list_products(
                limit=limit,
                offset=offset,
                fields="id",
                country_code=country_code,
                region_id=region_id,
                categories=categories,
            )
            return IdsPage(
                ids=[product.id for product in page.products if product.id],
                item_count=len(page.products),
                total_count=page.count,
            )

        ids = dedupe_ids(await collect_ids_from_paginated_source(fetch_page, self.page_size))
        logger.debug("collected category ids categories=%s ids=%s", list(categories), len(ids))
        return ids
