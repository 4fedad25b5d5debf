"""Catalog endpoints of the store API: variant lookup and product listing."""
from __future__ import annotations

from typing import Mapping, Optional, Sequence

from .http_client import QueryValue, StoreClient
from .models import ProductId, RawProductListResponse, VariantListPage

PRODUCTS_PATH = "/store/products"
VARIANTS_PATH = "/store/product-variants"

SORT_ORDERS = {
    "newest": "-created_at",
    "name-asc": "title",
    "name-desc": "-title",
}


class CatalogClient:
    def __init__(self, client: StoreClient) -> None:
        self.client = client

    async def list_variants(
        self,
        *,
        size: str,
        limit: int,
        offset: int,
        q: Optional[str] = None,
    ) -> VariantListPage:
        payload = await self.client.fetch_json(
            VARIANTS_PATH,
            {
                "limit": limit,
                "offset": offset,
                "fields": "product_id",
                "q": q,
                "options[value]": size,
            },
        )
        return VariantListPage.model_validate(payload)

    async def list_products(
        self,
        *,
        limit: int,
        offset: int,
        fields: str,
        country_code: str,
        region_id: Optional[str] = None,
        ids: Optional[Sequence[ProductId]] = None,
        categories: Sequence[str] = (),
        sort: Optional[str] = None,
    ) -> RawProductListResponse:
        params: dict[str, QueryValue] = {
            "id": list(ids) if ids else None,
            "limit": limit,
            "offset": offset,
            "fields": fields,
            "region_id": region_id,
            "country_code": country_code,
            "category_id": list(categories) if categories else None,
            "order": SORT_ORDERS.get(sort, sort) if sort and sort != "relevance" else None,
        }
        payload: Mapping = await self.client.fetch_json(PRODUCTS_PATH, params) or {}
        return RawProductListResponse(
            products=payload.get("products") or [],
            count=payload.get("count") or 0,
            limit=payload.get("limit") if payload.get("limit") is not None else limit,
            offset=payload.get("offset") if payload.get("offset") is not None else offset,
        )
