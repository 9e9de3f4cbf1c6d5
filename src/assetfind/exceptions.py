"""Errors raised by the search core.

The API layer maps each class to an HTTP status via ``status_code``.
"""

from typing import Any, Dict, Optional


class SearchError(Exception):
    """Base exception for all search errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class StoreUnavailableError(SearchError):
    """The catalog store could not be reached; distinct from "no results"."""

    status_code = 503

    def __init__(self, operation: str, reason: str = "") -> None:
        super().__init__(
            f"Catalog store unavailable during {operation}",
            "STORE_UNAVAILABLE",
            {"operation": operation, "reason": reason},
        )


class StaleCursorError(SearchError):
    """No live cached result list for the query; restart with search_first."""

    status_code = 410

    def __init__(self, query_key: str) -> None:
        super().__init__(
            f"No live results for query: {query_key!r}",
            "STALE_CURSOR",
            {"query": query_key},
        )


class InvalidCursorError(SearchError):
    """Cursor is not a usable offset."""

    status_code = 400

    def __init__(self, cursor: int) -> None:
        super().__init__(
            f"Invalid cursor: {cursor}",
            "INVALID_CURSOR",
            {"cursor": cursor},
        )
