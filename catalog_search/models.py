"""Pydantic models for upstream payloads, engine inputs and responses."""
from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ProductId = str

_PAGE_RANGE_RE = re.compile(r"^\s*(\d+)\s*(?:-\s*(\d+)\s*)?$")


class SearchHit(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None


class SearchHitsPage(BaseModel):
    hits: list[SearchHit] = Field(default_factory=list)
    estimatedTotalHits: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    @field_validator("hits", mode="before")
    @classmethod
    def _none_hits(cls, value: Any) -> Any:
        return value or []


class VariantRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    product_id: Optional[str] = None


class VariantListPage(BaseModel):
    variants: list[VariantRecord] = Field(default_factory=list)
    count: Optional[int] = None

    @field_validator("variants", mode="before")
    @classmethod
    def _none_variants(cls, value: Any) -> Any:
        return value or []


class ProductRecord(BaseModel):
    """Full catalog record. Only ``id`` is interpreted; the rest is passed through."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None


def normalize_sizes(sizes: Iterable[str] | None) -> tuple[str, ...]:
    """Trim size values, drop blanks and repeated values, keep request order."""
    if not sizes:
        return ()
    seen: set[str] = set()
    normalized: list[str] = []
    for size in sizes:
        value = size.strip()
        if not value or value in seen:
            continue
        seen.add(value)
        normalized.append(value)
    return tuple(normalized)


class Filters(BaseModel):
    """Immutable filter set built once per request."""

    model_config = ConfigDict(frozen=True)

    sizes: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()

    @field_validator("sizes", mode="before")
    @classmethod
    def _normalize_sizes(cls, value: Any) -> tuple[str, ...]:
        return normalize_sizes(value)

    @field_validator("categories", mode="before")
    @classmethod
    def _normalize_categories(cls, value: Any) -> tuple[str, ...]:
        if not value:
            return ()
        return tuple(item.strip() for item in value if item and item.strip())

    @property
    def has_sizes(self) -> bool:
        return bool(self.sizes)

    @property
    def has_categories(self) -> bool:
        return bool(self.categories)


class QueryParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: Optional[str] = None
    filters: Filters = Field(default_factory=Filters)
    limit: int = Field(..., gt=0)
    offset: int = Field(0, ge=0)
    fields: str
    region_id: Optional[str] = None
    country_code: str
    sort: Optional[str] = None

    @field_validator("query", mode="before")
    @classmethod
    def _blank_query(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def with_page(self, *, limit: int, offset: int) -> "QueryParams":
        return self.model_copy(update={"limit": limit, "offset": offset})


class RawProductListResponse(BaseModel):
    products: list[ProductRecord] = Field(default_factory=list)
    count: int = 0
    limit: int
    offset: int


class PageRange(BaseModel):
    """1-indexed, inclusive run of pages."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(1, ge=1)
    end: int = Field(1, ge=1)

    @model_validator(mode="after")
    def _check_order(self) -> "PageRange":
        if self.start > self.end:
            raise ValueError(f"page range start {self.start} is after end {self.end}")
        return self

    @property
    def is_range(self) -> bool:
        return self.start != self.end

    @classmethod
    def parse(cls, value: str | None) -> "PageRange":
        """Parse ``"3"`` or ``"2-5"``; empty input means the first page."""
        if not value:
            return cls()
        match = _PAGE_RANGE_RE.match(value)
        if not match:
            raise ValueError(f"invalid page range: {value!r}")
        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2) else start
        return cls(start=start, end=end)

    def serialize(self) -> str:
        return f"{self.start}-{self.end}" if self.is_range else str(self.start)


class InfiniteProductsPage(BaseModel):
    products: list[ProductRecord]
    totalCount: int
    hasNextPage: bool
    pageRange: str
