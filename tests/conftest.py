"""Shared fakes for the upstream search index and catalog."""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

import pytest

from catalog_search.models import (
    ProductRecord,
    QueryParams,
    RawProductListResponse,
    SearchHitsPage,
    VariantListPage,
)


class FakeSearchSource:
    """Serves hit pages for a fixed id list per query, recording every call."""

    def __init__(
        self,
        results: Dict[str, List[str]],
        estimated: Optional[Dict[str, int]] = None,
        delay: float = 0,
    ) -> None:
        self.results = results
        self.estimated = estimated or {}
        self.delay = delay
        self.calls: list[tuple[str, int, int]] = []
        self.error: Optional[Exception] = None

    async def search(self, query: str, limit: int, offset: int) -> SearchHitsPage:
        self.calls.append((query, limit, offset))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        ids = self.results.get(query, [])
        window = ids[offset : offset + limit]
        return SearchHitsPage(
            hits=[{"id": product_id} for product_id in window],
            estimatedTotalHits=self.estimated.get(query, len(ids)),
            limit=limit,
            offset=offset,
        )


class FakeCatalog:
    """In-memory stand-in for :class:`catalog_search.catalog.CatalogClient`."""

    def __init__(
        self,
        variants_by_size: Optional[Dict[str, List[str]]] = None,
        products: Optional[Sequence[str]] = None,
        categories: Optional[Dict[str, List[str]]] = None,
        variants_by_size_and_q: Optional[Dict[tuple, List[str]]] = None,
    ) -> None:
        self.variants_by_size = variants_by_size or {}
        self.variants_by_size_and_q = variants_by_size_and_q or {}
        self.categories = categories or {}
        self.products = {product_id: {"id": product_id, "title": f"Product {product_id}"} for product_id in products or []}
        self.variant_calls: list[dict] = []
        self.product_calls: list[dict] = []
        self.error: Optional[Exception] = None

    async def list_variants(self, *, size: str, limit: int, offset: int, q: Optional[str] = None) -> VariantListPage:
        self.variant_calls.append({"size": size, "limit": limit, "offset": offset, "q": q})
        if self.error is not None:
            raise self.error
        if q:
            product_ids = self.variants_by_size_and_q.get((size, q), [])
        else:
            product_ids = self.variants_by_size.get(size, [])
        window = product_ids[offset : offset + limit]
        return VariantListPage(
            variants=[{"id": f"var_{size}_{index}", "product_id": pid} for index, pid in enumerate(window, start=offset)],
            count=len(product_ids),
        )

    async def list_products(self, *, limit: int, offset: int, fields: str, country_code: str, region_id=None, ids=None, categories=(), sort=None) -> RawProductListResponse:
        self.product_calls.append(
            {"ids": list(ids) if ids else None, "limit": limit, "offset": offset, "categories": tuple(categories), "sort": sort}
        )
        if ids:
            # Deliberately reversed: the catalog does not preserve request order.
            records = [self.products[pid] for pid in reversed(list(ids)) if pid in self.products]
            return RawProductListResponse(products=records, count=len(records), limit=limit, offset=0)
        all_records = list(self.products.values())
        if categories:
            members = {pid for category in categories for pid in self.categories.get(category, [])}
            all_records = [record for record in all_records if record["id"] in members]
        return RawProductListResponse(
            products=all_records[offset : offset + limit],
            count=len(all_records),
            limit=limit,
            offset=offset,
        )


def product_ids(products: Sequence[ProductRecord]) -> list[str]:
    return [product.id for product in products]


@pytest.fixture
def make_params():
    def _make(query: Optional[str] = None, sizes=(), categories=(), limit: int = 12, offset: int = 0) -> QueryParams:
        return QueryParams(
            query=query,
            filters={"sizes": list(sizes), "categories": list(categories)},
            limit=limit,
            offset=offset,
            fields="id,title",
            country_code="cz",
        )

    return _make
