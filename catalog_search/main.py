"""FastAPI application wiring the product search engine."""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import settings
from .errors import SearchEngineError, UpstreamHTTPError, UpstreamTimeoutError
from .infinite import InfiniteAccumulator
from .models import Filters, InfiniteProductsPage, PageRange, QueryParams, RawProductListResponse
from .search_service import ProductSearchEngine
from .strategy import FetchStrategy, strategy_for

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# uvicorn installs its own handlers; ``force=True`` replaces them so engine
# timing lines share one format.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx", "elastic_transport"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

app = FastAPI(title="Catalog Search Service")


@app.on_event("startup")
async def startup_event() -> None:
    if not hasattr(app.state, "engine"):
        app.state.engine = ProductSearchEngine.from_settings(settings)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.aclose()


@app.exception_handler(UpstreamTimeoutError)
async def upstream_timeout_handler(request: Request, exc: UpstreamTimeoutError) -> JSONResponse:
    logger.error("Upstream timeout on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=504, content={"detail": str(exc)})


@app.exception_handler(UpstreamHTTPError)
async def upstream_http_error_handler(request: Request, exc: UpstreamHTTPError) -> JSONResponse:
    logger.error("Upstream error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc), "upstream_status": exc.status_code})


def get_engine(request: Request) -> ProductSearchEngine:
    return request.app.state.engine


def build_params(
    q: Optional[str] = Query(None, description="Free-text query"),
    sizes: Optional[List[str]] = Query(None),
    categories: Optional[List[str]] = Query(None),
    limit: int = Query(settings.default_page_size),
    offset: int = Query(0),
    fields: Optional[str] = None,
    region_id: Optional[str] = None,
    country_code: Optional[str] = None,
    sort: Optional[str] = None,
) -> QueryParams:
    try:
        return QueryParams(
            query=q,
            filters=Filters(sizes=sizes, categories=categories),
            limit=limit,
            offset=offset,
            fields=fields or settings.product_fields,
            region_id=region_id,
            country_code=country_code or settings.default_country_code,
            sort=sort,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.errors(include_url=False)) from exc


async def fetch_with_fallback(engine: ProductSearchEngine, params: QueryParams) -> RawProductListResponse:
    """Run the engine; optionally degrade a failed id-merge strategy.

    A failed search-and-size intersection is retried first as a variant
    lookup narrowed by the query text, then as the plain catalog listing.
    """
    try:
        return await engine.get_products(params)
    except SearchEngineError as exc:
        strategy = strategy_for(params)
        if not (settings.fallback_to_default_listing and strategy.merges_ids):
            raise
        if strategy is FetchStrategy.MEILI_SIZE_INTERSECTION:
            logger.warning("Search strategy failed, retrying as size search with text: %s", exc)
            try:
                return await engine.fetch_via_sizes(params, q=params.query)
            except SearchEngineError as retry_exc:
                exc = retry_exc
        logger.warning("Search strategy failed, falling back to default listing: %s", exc)
        return await engine.fetch_default_listing(params)


@app.get("/health")
async def health() -> dict:
    return {
        "store": settings.store_backend_url,
        "search_backend": settings.search_backend,
        "cache_backend": settings.cache_backend,
    }


@app.get("/products", response_model=RawProductListResponse)
async def list_products(
    params: QueryParams = Depends(build_params),
    engine: ProductSearchEngine = Depends(get_engine),
) -> RawProductListResponse:
    return await fetch_with_fallback(engine, params)


@app.get("/products/infinite", response_model=InfiniteProductsPage)
async def list_products_infinite(
    page: Optional[str] = Query(None, description="Page or page range, e.g. 3 or 2-5"),
    more: int = Query(0, ge=0, le=20, description="Extra pages to append after the range"),
    params: QueryParams = Depends(build_params),
    engine: ProductSearchEngine = Depends(get_engine),
) -> InfiniteProductsPage:
    try:
        page_range = PageRange.parse(page)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    accumulator = InfiniteAccumulator(lambda request: fetch_with_fallback(engine, request), params, page_range)
    await accumulator.fetch_initial()
    for _ in range(more):
        if await accumulator.fetch_next_page() is None:
            break
    return accumulator.snapshot()
