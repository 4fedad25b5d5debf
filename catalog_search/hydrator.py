"""Fetch full product records for a page of ids, in the requested order."""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from .catalog import CatalogClient
from .id_utils import order_products_by_ids
from .models import ProductId, ProductRecord

logger = logging.getLogger(__name__)


async def fetch_products_by_ids(
    catalog: CatalogClient,
    product_ids: Sequence[ProductId],
    *,
    fields: str,
    country_code: str,
    region_id: Optional[str] = None,
) -> list[ProductRecord]:
    """Hydrate ``product_ids`` with a single catalog call.

    Callers pass an already page-sliced list; the whole id list ends up in the
    query string. An empty list returns ``[]`` without calling the catalog.
    """
    if not product_ids:
        return []

    response = await catalog.list_products(
        ids=product_ids,
        limit=len(product_ids),
        offset=0,
        fields=fields,
        region_id=region_id,
        country_code=country_code,
    )
    products = order_products_by_ids(response.products, product_ids)
    if len(products) < len(product_ids):
        logger.debug("hydrated %s of %s requested products", len(products), len(product_ids))
    return products
