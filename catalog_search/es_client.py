"""Elasticsearch-backed search source.

Used when the storefront talks to its product index directly instead of the
store's hits endpoint. The official synchronous client is wrapped with
``asyncio.to_thread`` like the rest of the blocking calls.
"""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Any, Dict, List

from elasticsearch import Elasticsearch

from .models import SearchHitsPage

logger = logging.getLogger(__name__)

TEXT_FIELDS = ["title^3", "subtitle^2", "description", "handle", "variants.sku"]


@lru_cache(maxsize=4)
def get_client(host: str) -> Elasticsearch:
    logger.info("Connecting to Elasticsearch at %s", host)
    return Elasticsearch(host)


def build_search_body(query: str, limit: int, offset: int) -> Dict[str, Any]:
    return {
        "from": offset,
        "size": limit,
        "track_total_hits": True,
        "_source": ["id"],
        "query": {
            "multi_match": {
                "query": query,
                "fields": TEXT_FIELDS,
                "type": "most_fields",
                "fuzziness": "AUTO",
            }
        },
    }


class ElasticsearchSearchSource:
    def __init__(self, es: Elasticsearch, index: str) -> None:
        self.es = es
        self.index = index

    async def search(self, query: str, limit: int, offset: int) -> SearchHitsPage:
        body = build_search_body(query, limit, offset)
        response = await asyncio.to_thread(self.es.search, index=self.index, body=body)
        payload = getattr(response, "body", response)
        hits_section = payload.get("hits", {})
        raw_hits: List[dict] = hits_section.get("hits", [])
        total = hits_section.get("total")
        estimated = total.get("value") if isinstance(total, dict) else total
        hits = [{"id": (hit.get("_source") or {}).get("id") or hit.get("_id")} for hit in raw_hits]
        logger.debug("es search q=%r offset=%s hits=%s total=%s", query, offset, len(hits), estimated)
        return SearchHitsPage(hits=hits, estimatedTotalHits=estimated, limit=limit, offset=offset)
