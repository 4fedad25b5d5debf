"""Terminal client that reuses the in-process search engine."""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional

from catalog_search.config import settings
from catalog_search.infinite import InfiniteAccumulator
from catalog_search.models import Filters, InfiniteProductsPage, PageRange, QueryParams
from catalog_search.search_service import ProductSearchEngine
from catalog_search.strategy import strategy_for

GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


def build_params(query: Optional[str], args: argparse.Namespace) -> QueryParams:
    return QueryParams(
        query=query,
        filters=Filters(sizes=args.size, categories=args.category),
        limit=args.limit,
        offset=args.offset,
        fields=settings.product_fields,
        region_id=args.region_id,
        country_code=args.country_code or settings.default_country_code,
    )


async def perform_query(params: QueryParams, page_range: Optional[PageRange]) -> InfiniteProductsPage:
    engine = ProductSearchEngine.from_settings(settings)
    try:
        if page_range is None:
            response = await engine.get_products(params)
            return InfiniteProductsPage(
                products=response.products,
                totalCount=response.count,
                hasNextPage=response.offset + len(response.products) < response.count,
                pageRange="-",
            )
        accumulator = InfiniteAccumulator(engine.get_products, params, page_range)
        await accumulator.fetch_initial()
        return accumulator.snapshot()
    finally:
        await engine.aclose()


def pretty_print_response(params: QueryParams, payload: InfiniteProductsPage) -> None:
    more = f"{GREEN}more available{RESET}" if payload.hasNextPage else f"{RED}end{RESET}"
    print(
        f"Query: {params.query or '-'} | strategy: {strategy_for(params).value} | "
        f"shown: {len(payload.products)} | total: {payload.totalCount} | {more}"
    )
    for idx, product in enumerate(payload.products, start=1):
        extra = product.model_extra or {}
        print(f"  {idx:02d}. {product.id} | {extra.get('handle', '-')} | {extra.get('title', '-')}")


def run_one(query: Optional[str], args: argparse.Namespace) -> None:
    params = build_params(query, args)
    page_range = PageRange.parse(args.pages) if args.pages else None
    payload = asyncio.run(perform_query(params, page_range))
    pretty_print_response(params, payload)


def batch_mode(file_path: Path, args: argparse.Namespace) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            run_one(query, args)


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the catalog search engine")
    parser.add_argument("query", nargs="?", help="Free-text query. May be omitted when filtering by size only.")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    parser.add_argument("--size", action="append", default=[], help="Size filter, repeatable")
    parser.add_argument("--category", action="append", default=[], help="Category id filter, repeatable")
    parser.add_argument("--limit", type=int, default=settings.default_page_size)
    parser.add_argument("--offset", type=int, default=0)
    parser.add_argument("--pages", help="Page range to load at once, e.g. 1-3")
    parser.add_argument("--region-id", dest="region_id")
    parser.add_argument("--country-code", dest="country_code")
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=logging.getLevelName(settings.log_level.upper()))

    if args.batch:
        batch_mode(args.batch, args)
        return 0
    run_one(args.query, args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
