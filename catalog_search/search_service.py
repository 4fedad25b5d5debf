"""Product search engine: strategy dispatch, id merge, pagination and hydration."""
from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Optional

from .cache import IdsCache, build_cache
from .catalog import CatalogClient
from .collectors import CategoryCollector, SearchCollector, VariantCollector
from .config import Settings, settings as default_settings
from .http_client import StoreClient
from .hydrator import fetch_products_by_ids
from .id_utils import dedupe_ids_from_hits, intersect_ids_preserving_order
from .models import ProductId, QueryParams, RawProductListResponse
from .pagination import estimate_search_count, slice_page
from .search_sources import SearchSource, build_search_source
from .strategy import FetchStrategy, strategy_for

logger = logging.getLogger(__name__)


class ProductSearchEngine:
    def __init__(
        self,
        search_source: SearchSource,
        catalog: CatalogClient,
        cache: Optional[IdsCache] = None,
        *,
        ids_page_size: int = default_settings.ids_page_size,
        ids_cache_ttl_seconds: int = default_settings.ids_cache_ttl_seconds,
        store_client: Optional[StoreClient] = None,
    ) -> None:
        self.search_source = search_source
        self.catalog = catalog
        self.search_collector = SearchCollector(
            search_source, cache, page_size=ids_page_size, ttl_seconds=ids_cache_ttl_seconds
        )
        self.variant_collector = VariantCollector(
            catalog, cache, page_size=ids_page_size, ttl_seconds=ids_cache_ttl_seconds
        )
        self.category_collector = CategoryCollector(
            catalog, cache, page_size=ids_page_size, ttl_seconds=ids_cache_ttl_seconds
        )
        self._store_client = store_client

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "ProductSearchEngine":
        client = StoreClient(config)
        return cls(
            build_search_source(config, client),
            CatalogClient(client),
            build_cache(config),
            ids_page_size=config.ids_page_size,
            ids_cache_ttl_seconds=config.ids_cache_ttl_seconds,
            store_client=client,
        )

    async def aclose(self) -> None:
        if self._store_client is not None:
            await self._store_client.aclose()

    async def get_products(self, params: QueryParams) -> RawProductListResponse:
        strategy = strategy_for(params)
        if params.sort and params.sort != "relevance" and strategy.merges_ids:
            logger.warning(
                "sort=%r is not applied by strategy %s; results keep %s order",
                params.sort,
                strategy.value,
                "relevance" if params.query else "catalog variant",
            )
        start = perf_counter()
        if strategy is FetchStrategy.MEILI_SIZE_INTERSECTION:
            response = await self._fetch_via_search_and_sizes(params)
        elif strategy is FetchStrategy.MEILI_ONLY:
            response = await self._fetch_via_search(params)
        elif strategy is FetchStrategy.SIZE_ONLY_FALLBACK:
            response = await self.fetch_via_sizes(params)
        else:
            response = await self.fetch_default_listing(params)
        logger.info(
            "timing: total=%.2fms strategy=%s q=%r sizes=%s categories=%s limit=%s offset=%s count=%s",
            (perf_counter() - start) * 1000,
            strategy.value,
            params.query,
            list(params.filters.sizes),
            list(params.filters.categories),
            params.limit,
            params.offset,
            response.count,
        )
        return response

    async def fetch_default_listing(self, params: QueryParams) -> RawProductListResponse:
        """Delegate to the catalog's own filtered listing."""
        return await self.catalog.list_products(
            limit=params.limit,
            offset=params.offset,
            fields=params.fields,
            region_id=params.region_id,
            country_code=params.country_code,
            categories=params.filters.categories,
            sort=params.sort,
        )

    async def fetch_via_sizes(self, params: QueryParams, *, q: Optional[str] = None) -> RawProductListResponse:
        """Size-filtered listing from the variant endpoint, optionally narrowed by ``q``."""
        size_ids, category_ids = await asyncio.gather(
            self.variant_collector.collect(params.filters.sizes, q=q),
            self._collect_category_ids(params),
        )
        ids = self._constrain_to_categories(size_ids, category_ids, params)
        return await self._page_from_known_ids(ids, params)

    async def _fetch_via_search_and_sizes(self, params: QueryParams) -> RawProductListResponse:
        # All collectors run concurrently; any failing fails the request.
        search_ids, size_ids, category_ids = await asyncio.gather(
            self.search_collector.collect(params.query or ""),
            self.variant_collector.collect(params.filters.sizes),
            self._collect_category_ids(params),
        )
        matching = intersect_ids_preserving_order(search_ids, size_ids)
        logger.debug(
            "intersection search=%s sizes=%s matching=%s", len(search_ids), len(size_ids), len(matching)
        )
        matching = self._constrain_to_categories(matching, category_ids, params)
        return await self._page_from_known_ids(matching, params)

    async def _fetch_via_search(self, params: QueryParams) -> RawProductListResponse:
        if params.filters.has_categories:
            # The index cannot filter by category, so the full match list is
            # narrowed here and counted exactly.
            search_ids, category_ids = await asyncio.gather(
                self.search_collector.collect(params.query or ""),
                self._collect_category_ids(params),
            )
            ids = self._constrain_to_categories(search_ids, category_ids, params)
            return await self._page_from_known_ids(ids, params)

        page = await self.search_source.search(params.query or "", params.limit, params.offset)
        page_limit = page.limit if page.limit is not None else params.limit
        page_offset = page.offset if page.offset is not None else params.offset
        product_ids = dedupe_ids_from_hits(page.hits)
        count = estimate_search_count(page_offset, page_limit, len(page.hits), page.estimatedTotalHits)
        products = await self._hydrate(product_ids, params)
        return RawProductListResponse(products=products, count=count, limit=page_limit, offset=page_offset)

    async def _collect_category_ids(self, params: QueryParams) -> Optional[list[ProductId]]:
        if not params.filters.has_categories:
            return None
        return await self.category_collector.collect(
            params.filters.categories,
            country_code=params.country_code,
            region_id=params.region_id,
        )

    @staticmethod
    def _constrain_to_categories(
        ids: list[ProductId], category_ids: Optional[list[ProductId]], params: QueryParams
    ) -> list[ProductId]:
        if category_ids is None:
            return ids
        constrained = intersect_ids_preserving_order(ids, category_ids)
        logger.debug(
            "category constraint categories=%s before=%s after=%s",
            list(params.filters.categories),
            len(ids),
            len(constrained),
        )
        return constrained

    async def _page_from_known_ids(self, ids: list[ProductId], params: QueryParams) -> RawProductListResponse:
        page_ids = slice_page(ids, params.limit, params.offset)
        products = await self._hydrate(page_ids, params)
        return RawProductListResponse(products=products, count=len(ids), limit=params.limit, offset=params.offset)

    async def _hydrate(self, ids: list[ProductId], params: QueryParams):
        return await fetch_products_by_ids(
            self.catalog,
            ids,
            fields=params.fields,
            region_id=params.region_id,
            country_code=params.country_code,
        )
