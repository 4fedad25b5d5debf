"""HTTP surface of the search service."""

import pytest
from fastapi.testclient import TestClient

from catalog_search import main
from catalog_search.config import Settings
from catalog_search.errors import UpstreamTimeoutError
from catalog_search.search_service import ProductSearchEngine
from conftest import FakeCatalog, FakeSearchSource

IDS = [f"p{i}" for i in range(1, 21)]


@pytest.fixture
def upstream():
    source = FakeSearchSource({"shirt": ["p1", "p2", "p3"]})
    catalog = FakeCatalog({"M": ["p3", "p1", "p4"]}, products=IDS)
    main.app.state.engine = ProductSearchEngine(source, catalog)
    yield source, catalog
    del main.app.state.engine


@pytest.fixture
def client(upstream):
    return TestClient(main.app)


def test_products_intersection(client):
    response = client.get("/products", params={"q": "shirt", "sizes": ["M"], "limit": 2, "offset": 0})

    assert response.status_code == 200
    body = response.json()
    assert [product["id"] for product in body["products"]] == ["p1", "p3"]
    assert (body["count"], body["limit"], body["offset"]) == (2, 2, 0)
    assert body["products"][0]["title"] == "Product p1"


def test_invalid_paging_is_rejected(client):
    assert client.get("/products", params={"limit": 0}).status_code == 400
    assert client.get("/products", params={"offset": -3}).status_code == 400


def test_failed_search_falls_back_to_default_listing(client, upstream, monkeypatch):
    source, _ = upstream
    source.error = UpstreamTimeoutError("/store/meilisearch/products-hits", 50)
    monkeypatch.setattr(main, "settings", Settings(fallback_to_default_listing=True))

    response = client.get("/products", params={"q": "shirt", "limit": 3})

    assert response.status_code == 200
    assert response.json()["count"] == len(IDS)


def test_timeout_maps_to_gateway_timeout_without_fallback(client, upstream, monkeypatch):
    source, _ = upstream
    source.error = UpstreamTimeoutError("/store/meilisearch/products-hits", 50)
    monkeypatch.setattr(main, "settings", Settings(fallback_to_default_listing=False))

    response = client.get("/products", params={"q": "shirt"})

    assert response.status_code == 504
    assert "timed out after 50ms" in response.json()["detail"]


def test_infinite_range_with_load_more(client):
    response = client.get("/products/infinite", params={"page": "2-3", "limit": 5, "more": 1})

    assert response.status_code == 200
    body = response.json()
    assert [product["id"] for product in body["products"]] == IDS[5:20]
    assert body["totalCount"] == 20
    assert body["hasNextPage"] is False
    assert body["pageRange"] == "2-3"


def test_infinite_rejects_bad_page_range(client):
    assert client.get("/products/infinite", params={"page": "4-2"}).status_code == 400


def test_failed_intersection_retries_as_size_search_with_text(client, upstream, monkeypatch):
    source, catalog = upstream
    source.error = UpstreamTimeoutError("/store/meilisearch/products-hits", 50)
    catalog.variants_by_size_and_q[("M", "shirt")] = ["p4", "p3"]
    monkeypatch.setattr(main, "settings", Settings(fallback_to_default_listing=True))

    response = client.get("/products", params={"q": "shirt", "sizes": ["M"], "limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert [product["id"] for product in body["products"]] == ["p4", "p3"]
    assert body["count"] == 2
    assert catalog.variant_calls[-1]["q"] == "shirt"


def test_failed_size_search_with_text_falls_back_to_default_listing(client, upstream, monkeypatch):
    source, catalog = upstream
    source.error = UpstreamTimeoutError("/store/meilisearch/products-hits", 50)
    catalog.error = UpstreamTimeoutError("/store/product-variants", 50)
    monkeypatch.setattr(main, "settings", Settings(fallback_to_default_listing=True))

    response = client.get("/products", params={"q": "shirt", "sizes": ["M"], "limit": 3})

    assert response.status_code == 200
    assert response.json()["count"] == len(IDS)
    assert catalog.variant_calls[-1]["q"] == "shirt"


def test_load_more_with_sizes_and_categories_stops_at_members(client, upstream):
    _, catalog = upstream
    catalog.variants_by_size["M"] = ["p1", "p2", "p3", "p4"]
    catalog.categories["c1"] = ["p1", "p3"]

    response = client.get("/products/infinite", params={"sizes": ["M"], "categories": ["c1"], "limit": 1, "more": 5})

    body = response.json()
    assert [product["id"] for product in body["products"]] == ["p1", "p3"]
    assert body["totalCount"] == 2
    assert body["hasNextPage"] is False
