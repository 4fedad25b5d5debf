"""Caches for collected id lists: Redis, in-memory and a no-op backend."""
from __future__ import annotations

import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import List, Optional, Protocol

import redis

from .config import Settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "catalog-search:ids:"


class IdsCache(Protocol):
    def get(self, key: str) -> Optional[List[str]]: ...

    def set(self, key: str, value: List[str], ttl: int) -> None: ...


@dataclass
class RedisCache:
    client: redis.Redis

    def get(self, key: str) -> Optional[List[str]]:
        try:
            data = self.client.get(KEY_PREFIX + key)
        except redis.RedisError as exc:
            logger.warning("Redis get failed: %s", exc)
            return None
        if not data:
            return None
        try:
            value = json.loads(data)
        except json.JSONDecodeError:
            return None
        return value if isinstance(value, list) else None

    def set(self, key: str, value: List[str], ttl: int) -> None:
        try:
            self.client.setex(KEY_PREFIX + key, ttl, json.dumps(value))
        except redis.RedisError as exc:
            logger.warning("Redis set failed: %s", exc)


class InMemoryCache:
    """TTL cache bounded to ``max_entries``; the oldest entry is evicted first."""

    def __init__(self, max_entries: int = 200) -> None:
        self.max_entries = max_entries
        self._store: OrderedDict[str, tuple[float, List[str]]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[List[str]]:
        with self._lock:
            value = self._store.get(key)
            if not value:
                return None
            expires_at, payload = value
            if expires_at < time.time():
                self._store.pop(key, None)
                return None
            return list(payload)

    def set(self, key: str, value: List[str], ttl: int) -> None:
        with self._lock:
            self._store.pop(key, None)
            self._store[key] = (time.time() + ttl, list(value))
            while len(self._store) > self.max_entries:
                self._store.popitem(last=False)

    def __len__(self) -> int:
        return len(self._store)


class NullCache:
    def get(self, key: str) -> Optional[List[str]]:
        return None

    def set(self, key: str, value: List[str], ttl: int) -> None:
        return None


def build_cache(config: Settings) -> IdsCache:
    backend = config.cache_backend.lower()
    if backend == "none":
        return NullCache()
    if backend == "redis":
        try:
            client = redis.Redis(host=config.redis_host, port=config.redis_port, decode_responses=False)
            client.ping()
            logger.info("Using Redis cache at %s:%s", config.redis_host, config.redis_port)
            return RedisCache(client)
        except redis.RedisError:
            logger.warning("Redis not available, using in-memory cache")
    return InMemoryCache(max_entries=config.ids_cache_max_entries)
