"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_flag(name: str, default: str) -> bool:
    return _get_env(name, default).lower() in {"1", "true", "yes"}


DEFAULT_PRODUCT_FIELDS = ",".join(
    [
        "id",
        "title",
        "handle",
        "thumbnail",
        "created_at",
        "variants.id",
        "variants.title",
        "variants.options",
        "variants.calculated_price",
        "categories.id",
        "categories.handle",
    ]
)


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    store_backend_url: str = _get_env("STORE_BACKEND_URL", "http://localhost:9000").rstrip("/")
    store_publishable_key: str = _get_env("STORE_PUBLISHABLE_KEY", "")
    request_timeout_ms: int = int(_get_env("REQUEST_TIMEOUT_MS", "10000"))
    ids_page_size: int = int(_get_env("IDS_PAGE_SIZE", "250"))
    ids_cache_ttl_seconds: int = int(_get_env("IDS_CACHE_TTL_SECONDS", "300"))
    ids_cache_max_entries: int = int(_get_env("IDS_CACHE_MAX_ENTRIES", "200"))
    cache_backend: str = _get_env("CACHE_BACKEND", "memory")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    search_backend: str = _get_env("SEARCH_BACKEND", "store")
    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    es_index: str = _get_env("ES_INDEX", "products")
    default_page_size: int = int(_get_env("DEFAULT_PAGE_SIZE", "12"))
    default_country_code: str = _get_env("DEFAULT_COUNTRY_CODE", "cz")
    product_fields: str = _get_env("PRODUCT_FIELDS", DEFAULT_PRODUCT_FIELDS)
    fallback_to_default_listing: bool = _get_flag("FALLBACK_TO_DEFAULT_LISTING", "true")
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
