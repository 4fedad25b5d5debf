"""Free-text search sources returning relevance-ordered hit pages."""
from __future__ import annotations

from typing import Protocol

from .config import Settings
from .es_client import ElasticsearchSearchSource, get_client
from .http_client import StoreClient
from .models import SearchHitsPage

HITS_PATH = "/store/meilisearch/products-hits"


class SearchSource(Protocol):
    async def search(self, query: str, limit: int, offset: int) -> SearchHitsPage: ...


class StoreSearchSource:
    """Search index exposed by the store API as a hits endpoint."""

    def __init__(self, client: StoreClient) -> None:
        self.client = client

    async def search(self, query: str, limit: int, offset: int) -> SearchHitsPage:
        payload = await self.client.fetch_json(
            HITS_PATH,
            {"query": query, "limit": limit, "offset": offset},
        )
        return SearchHitsPage.model_validate(payload or {})


def build_search_source(config: Settings, client: StoreClient) -> SearchSource:
    if config.search_backend.lower() == "elasticsearch":
        return ElasticsearchSearchSource(get_client(config.es_host), config.es_index)
    return StoreSearchSource(client)
