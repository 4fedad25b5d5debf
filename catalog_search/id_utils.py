"""Order-preserving identifier set helpers."""
from __future__ import annotations

from typing import Iterable, Optional, Sequence, TypeVar

from .models import ProductId, ProductRecord, SearchHit

RecordT = TypeVar("RecordT", bound=ProductRecord)


def _clean_id(value: Optional[str]) -> str:
    return value.strip() if value else ""


def dedupe_ids(ids: Iterable[Optional[str]]) -> list[ProductId]:
    """Keep the first occurrence of every non-blank id."""
    seen: set[str] = set()
    result: list[ProductId] = []
    for raw in ids:
        product_id = _clean_id(raw)
        if not product_id or product_id in seen:
            continue
        seen.add(product_id)
        result.append(product_id)
    return result


def dedupe_ids_from_hits(hits: Iterable[SearchHit] | None) -> list[ProductId]:
    return dedupe_ids(hit.id for hit in hits or [])


def intersect_ids_preserving_order(primary: Sequence[ProductId], secondary: Iterable[ProductId]) -> list[ProductId]:
    """Ids present in both sequences, in ``primary`` order."""
    allowed = set(secondary)
    return [product_id for product_id in primary if product_id in allowed]


def order_products_by_ids(records: Iterable[RecordT], ids: Sequence[ProductId]) -> list[RecordT]:
    """Reorder hydrated records to ``ids``; ids with no record are skipped."""
    by_id = {record.id: record for record in records if record.id}
    return [by_id[product_id] for product_id in ids if product_id in by_id]
