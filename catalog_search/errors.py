"""Exception types raised by the search engine and its upstream clients."""
from __future__ import annotations

ERROR_BODY_EXCERPT = 280


class SearchEngineError(Exception):
    """Base exception for every failure raised by the engine."""


class UpstreamError(SearchEngineError):
    """An upstream catalog or search call did not return usable data."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class UpstreamTimeoutError(UpstreamError):
    """The request was aborted because it exceeded the configured timeout."""

    def __init__(self, path: str, timeout_ms: int) -> None:
        super().__init__(f"Request timed out after {timeout_ms}ms for {path}", path)
        self.timeout_ms = timeout_ms


class UpstreamHTTPError(UpstreamError):
    """Non-success HTTP status from an upstream service."""

    def __init__(self, path: str, status_code: int, reason: str, body: str) -> None:
        excerpt = body[:ERROR_BODY_EXCERPT]
        super().__init__(f"HTTP {status_code}: {reason}. {excerpt}", path)
        self.status_code = status_code
        self.reason = reason
        self.body = excerpt


class AccumulatorStateError(SearchEngineError):
    """An infinite accumulator operation was called in the wrong state."""
