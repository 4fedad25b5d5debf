"""Thin async JSON client for the store API.

One ``httpx.AsyncClient`` is shared per :class:`StoreClient` so connections are
reused across calls. Every call carries its own timeout; retries are left to
callers.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence, Union
from urllib.parse import urlencode

import httpx

from .config import Settings, settings as default_settings
from .errors import UpstreamHTTPError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

QueryPrimitive = Union[str, int, float, bool]
QueryValue = Union[QueryPrimitive, Sequence[QueryPrimitive], None]

PUBLISHABLE_KEY_HEADER = "x-publishable-api-key"


def _stringify(value: QueryPrimitive) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query_string(params: Mapping[str, QueryValue]) -> str:
    """Serialize a flat mapping; lists become repeated ``key[]`` entries, ``None`` is skipped."""
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((f"{key}[]", _stringify(item)) for item in value)
            continue
        pairs.append((key, _stringify(value)))
    return urlencode(pairs)


def build_headers(publishable_key: str) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if publishable_key:
        headers[PUBLISHABLE_KEY_HEADER] = publishable_key
    return headers


class StoreClient:
    def __init__(
        self,
        config: Settings = default_settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = config.store_backend_url.rstrip("/")
        self.timeout_ms = config.request_timeout_ms
        self._client = httpx.AsyncClient(
            headers=build_headers(config.store_publishable_key),
            timeout=self.timeout_ms / 1000,
            transport=transport,
        )

    async def fetch_json(self, path: str, params: Mapping[str, QueryValue] | None = None) -> Any:
        query_string = build_query_string(params or {})
        url = f"{self.base_url}{path}{'?' + query_string if query_string else ''}"
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            logger.warning("Request to %s timed out after %sms", path, self.timeout_ms)
            raise UpstreamTimeoutError(path, self.timeout_ms) from exc

        if not response.is_success:
            logger.warning("Request to %s failed with HTTP %s", path, response.status_code)
            raise UpstreamHTTPError(path, response.status_code, response.reason_phrase, response.text)
        return response.json()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "StoreClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
